import pytest

from mock_interviewer.voice.speakable import normalize_for_speech


def test_reasoning_blocks_are_never_spoken() -> None:
    text = "<think>The candidate seems nervous.</think>Hello **there**! <reasoning>x</reasoning>"
    assert normalize_for_speech(text) == "Hello there!"


def test_markdown_structure_is_flattened() -> None:
    text = "# Next round\n- Tell me about [your team](https://example.com)\n> Use `STAR` format"
    assert normalize_for_speech(text) == "Next round Tell me about your team Use STAR format"


def test_numbered_lists_and_strikethrough() -> None:
    text = "1. First ~~point~~\n2) Second point"
    assert normalize_for_speech(text) == "First point Second point"


def test_underscore_emphasis_and_identifiers() -> None:
    assert normalize_for_speech("__Really__ think about snake_case") == "Really think about snake case"


def test_code_fences_are_removed() -> None:
    assert normalize_for_speech("```python\nhello\n```") == "hello"


def test_markup_tags_are_dropped() -> None:
    assert normalize_for_speech("<b>Bold</b> move") == "Bold move"


def test_pictographs_and_joiners_are_dropped() -> None:
    assert normalize_for_speech("👨‍👩‍👧 Welcome aboard ✨") == "Welcome aboard"


def test_plain_punctuation_survives() -> None:
    text = "It's 50% done, right? Salary: $90k (roughly) - fine/great & more."
    assert normalize_for_speech(text) == text


def test_whitespace_is_collapsed() -> None:
    assert normalize_for_speech("  Tell\n\n me\tmore  ") == "Tell me more"


@pytest.mark.parametrize("text", ["", "   ", "👍🔥", "***", "```\n```", None])
def test_nothing_speakable(text) -> None:
    assert normalize_for_speech(text) == ""
