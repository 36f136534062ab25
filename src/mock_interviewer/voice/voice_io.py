"""Voice I/O adapter.

Wraps a speech recognizer and a speech synthesizer behind one normalized
contract: single-flight capture with an inactivity window, one utterance of
playback at a time, and synchronous, idempotent cancellation of both.

Cancellation clears the active-operation slot immediately, so the adapter
accepts a new request right away while the cancelled call settles with
`CaptureCancelled` / `PlaybackCancelled`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Protocol

from mock_interviewer.voice.errors import (
    CaptureBusy,
    CaptureCancelled,
    CaptureError,
    CaptureUnsupported,
    NoSpeechDetected,
    PlaybackCancelled,
    PlaybackError,
    PlaybackUnsupported,
    VoiceIOError,
)
from mock_interviewer.voice.speakable import normalize_for_speech

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechOptions:
    rate: float = 0.9
    pitch: float = 1.0
    volume: float = 0.8


@dataclass(frozen=True)
class VoiceCapabilities:
    capture_supported: bool
    synthesis_supported: bool


@dataclass(frozen=True)
class RecognitionEvent:
    text: str
    is_final: bool = False


@dataclass(frozen=True)
class VoiceIOConfig:
    inactivity_timeout_s: float = 10.0
    speech_options: SpeechOptions = field(default_factory=SpeechOptions)


class SpeechRecognizer(Protocol):
    def is_available(self) -> bool: ...

    def listen(self) -> AsyncGenerator[RecognitionEvent, None]: ...


class SpeechSynthesizer(Protocol):
    def is_available(self) -> bool: ...

    async def speak(self, text: str, options: SpeechOptions) -> None: ...


def _probe(backend: SpeechRecognizer | SpeechSynthesizer | None) -> bool:
    if backend is None:
        return False
    try:
        return bool(backend.is_available())
    except Exception as e:
        logger.warning(f"[VOICE] capability probe failed for {type(backend).__name__}: {e}")
        return False


class VoiceIO:
    """Normalized speech capture and playback."""

    def __init__(
        self,
        recognizer: SpeechRecognizer | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        config: VoiceIOConfig | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._config = config or VoiceIOConfig()
        self._capabilities: VoiceCapabilities | None = None
        self._capture_task: asyncio.Task[str] | None = None
        self._speak_task: asyncio.Task[None] | None = None

    @property
    def config(self) -> VoiceIOConfig:
        return self._config

    @property
    def is_capturing(self) -> bool:
        return self._capture_task is not None

    @property
    def is_speaking(self) -> bool:
        return self._speak_task is not None

    def capabilities(self) -> VoiceCapabilities:
        """Report what this platform supports. The probe result is cached."""
        if self._capabilities is None:
            self._capabilities = VoiceCapabilities(
                capture_supported=_probe(self._recognizer),
                synthesis_supported=_probe(self._synthesizer),
            )
            logger.info(
                f"[VOICE] capabilities capture={self._capabilities.capture_supported} "
                f"synthesis={self._capabilities.synthesis_supported}"
            )
        return self._capabilities

    def refresh_capabilities(self) -> VoiceCapabilities:
        self._capabilities = None
        return self.capabilities()

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    async def capture_utterance(self) -> str:
        """
        Listen for one spoken utterance.

        Returns:
            The final transcript.

        Raises:
            CaptureUnsupported: No recognizer is available.
            CaptureBusy: Another capture is outstanding.
            CaptureCancelled: `cancel_capture()` was called before completion.
            NoSpeechDetected: The inactivity window closed with no transcript.
            CaptureError: The recognizer failed.
        """
        if not self.capabilities().capture_supported:
            raise CaptureUnsupported("Speech recognition is not supported on this platform")
        if self._capture_task is not None:
            raise CaptureBusy("Already listening")

        task = asyncio.ensure_future(self._capture())
        self._capture_task = task
        logger.debug("[VOICE][STT] capture started")

        try:
            text = await task
        except asyncio.CancelledError:
            if self._capture_task is not task:
                raise CaptureCancelled("Speech capture was cancelled") from None
            raise
        except VoiceIOError:
            if self._capture_task is not task:
                raise CaptureCancelled("Speech capture was cancelled") from None
            raise
        else:
            if self._capture_task is not task:
                raise CaptureCancelled("Speech capture was cancelled")
            return text
        finally:
            if self._capture_task is task:
                self._capture_task = None

    async def _capture(self) -> str:
        assert self._recognizer is not None
        timeout = self._config.inactivity_timeout_s
        events = self._recognizer.listen()
        transcript = ""

        try:
            while True:
                try:
                    event = await asyncio.wait_for(events.__anext__(), timeout=timeout)
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError:
                    logger.info(f"[VOICE][STT] no speech activity for {timeout:.1f}s")
                    break

                if event.is_final and event.text.strip():
                    transcript = event.text.strip()
                    break
        except VoiceIOError:
            raise
        except Exception as e:
            raise CaptureError(f"Speech recognition error: {e}") from e
        finally:
            await events.aclose()

        if not transcript:
            raise NoSpeechDetected("No speech detected. Please try again.")

        logger.info(f"[VOICE][STT] transcript chars={len(transcript)}")
        return transcript

    def cancel_capture(self) -> None:
        """Stop the outstanding capture, if any. Safe to call at any time."""
        task, self._capture_task = self._capture_task, None
        if task is not None and not task.done():
            logger.debug("[VOICE][STT] capture cancelled")
            task.cancel()

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    async def speak(self, text: str, options: SpeechOptions | None = None) -> None:
        """
        Speak text aloud, replacing whatever is currently playing.

        Args:
            text: Raw reply text. Only its normalized copy is spoken.
            options: Rate, pitch and volume (defaults to the adapter config).

        Raises:
            PlaybackUnsupported: No synthesizer is available.
            PlaybackCancelled: `cancel_speaking()` or a newer `speak()` interrupted it.
            PlaybackError: The synthesizer failed.
        """
        if not self.capabilities().synthesis_supported:
            raise PlaybackUnsupported("Speech synthesis is not supported on this platform")

        self.cancel_speaking()

        speakable = normalize_for_speech(text)
        if not speakable:
            logger.info("[VOICE][TTS] nothing speakable after normalization; skipping")
            return

        task = asyncio.ensure_future(self._synthesize(speakable, options or self._config.speech_options))
        self._speak_task = task
        logger.debug(f"[VOICE][TTS] speaking chars={len(speakable)}")

        try:
            await task
        except asyncio.CancelledError:
            if self._speak_task is not task:
                raise PlaybackCancelled("Speech playback was cancelled") from None
            raise
        except VoiceIOError:
            if self._speak_task is not task:
                raise PlaybackCancelled("Speech playback was cancelled") from None
            raise
        else:
            if self._speak_task is not task:
                raise PlaybackCancelled("Speech playback was cancelled")
        finally:
            if self._speak_task is task:
                self._speak_task = None

    async def _synthesize(self, text: str, options: SpeechOptions) -> None:
        assert self._synthesizer is not None
        try:
            await self._synthesizer.speak(text, options)
        except VoiceIOError:
            raise
        except Exception as e:
            raise PlaybackError(f"Speech synthesis error: {e}") from e

    def cancel_speaking(self) -> None:
        """Stop the current utterance, if any. Safe to call at any time."""
        task, self._speak_task = self._speak_task, None
        if task is not None and not task.done():
            logger.debug("[VOICE][TTS] playback cancelled")
            task.cancel()
