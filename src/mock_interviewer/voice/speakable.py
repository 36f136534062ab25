"""Utilities for turning interviewer replies into speakable text.

Voice mode must never feed the synthesizer:
- internal reasoning blocks
- code or markup
- emoji and other pictographs

Only the spoken copy is normalized; the transcript keeps the raw reply.
"""

from __future__ import annotations

import re
import unicodedata

_TAG_REASONING_RE = re.compile(r"<(reasoning|think)>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"</?[A-Za-z][\w-]*[^>]*>")
_CODE_FENCE_RE = re.compile(r"```[^\n]*\n?")
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HEADER_RE = re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE)
_QUOTE_RE = re.compile(r"^\s*>\s?", re.MULTILINE)
_BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+", re.MULTILINE)
_EMPHASIS_RE = re.compile(r"\*{1,3}|~~")
_UNDERSCORE_RE = re.compile(r"(?<!\w)_+|_+(?!\w)")
_WHITESPACE_RE = re.compile(r"\s+")

_ALLOWED_PUNCTUATION = frozenset(".,!?;:'\"()-%$&/")
_DROPPED_CATEGORIES = frozenset({"So", "Sk", "Cs", "Co", "Cn"})
_JOINERS = frozenset({"\u200d", "\ufe0e", "\ufe0f"})


def _keep_char(ch: str) -> bool:
    if ch in _JOINERS:
        return False
    if ch.isspace() or ch in _ALLOWED_PUNCTUATION:
        return True
    if unicodedata.category(ch) in _DROPPED_CATEGORIES:
        return False
    return ch.isalnum()


def normalize_for_speech(text: str) -> str:
    """Return the text a synthesizer should actually say.

    Strips reasoning blocks, markup tags, code fences and backticks,
    markdown emphasis, header, quote and list markers, link syntax, and
    pictographic symbols, keeps only alphanumerics and a small punctuation
    set, then collapses whitespace. Returns an empty string when nothing
    alphanumeric remains.
    """
    raw = (text or "").strip()
    if not raw:
        return ""

    raw = _TAG_REASONING_RE.sub(" ", raw)
    raw = _TAG_RE.sub(" ", raw)
    raw = _CODE_FENCE_RE.sub(" ", raw)
    raw = raw.replace("`", "")
    raw = _LINK_RE.sub(r"\1", raw)
    raw = _HEADER_RE.sub("", raw)
    raw = _QUOTE_RE.sub("", raw)
    raw = _BULLET_RE.sub("", raw)
    raw = _EMPHASIS_RE.sub("", raw)
    raw = _UNDERSCORE_RE.sub("", raw).replace("_", " ")

    speak = "".join(ch for ch in raw if _keep_char(ch))
    speak = _WHITESPACE_RE.sub(" ", speak).strip()

    if not any(ch.isalnum() for ch in speak):
        return ""
    return speak
