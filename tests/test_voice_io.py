import asyncio

import pytest

from mock_interviewer.voice.errors import (
    CaptureBusy,
    CaptureCancelled,
    CaptureError,
    CaptureUnsupported,
    NoSpeechDetected,
    PlaybackCancelled,
    PlaybackError,
    PlaybackUnsupported,
)
from mock_interviewer.voice.voice_io import SpeechOptions, VoiceIO, VoiceIOConfig


@pytest.mark.asyncio
async def test_capture_returns_final_transcript(voice, recognizer, settle) -> None:
    task = asyncio.create_task(voice.capture_utterance())
    await settle()
    assert voice.is_capturing

    recognizer.push("I", is_final=False)
    recognizer.push("I enjoy building APIs", is_final=True)

    assert await task == "I enjoy building APIs"
    assert not voice.is_capturing
    assert recognizer.closed == 1


@pytest.mark.asyncio
async def test_second_capture_is_rejected_while_one_is_outstanding(voice, recognizer, settle) -> None:
    first = asyncio.create_task(voice.capture_utterance())
    await settle()

    with pytest.raises(CaptureBusy):
        await voice.capture_utterance()

    voice.cancel_capture()
    with pytest.raises(CaptureCancelled):
        await first
    assert recognizer.listen_calls == 1


@pytest.mark.asyncio
async def test_cancelled_capture_never_returns_partial_text(voice, recognizer, settle) -> None:
    task = asyncio.create_task(voice.capture_utterance())
    await settle()
    recognizer.push("Half a sent", is_final=False)
    await settle()

    voice.cancel_capture()
    assert not voice.is_capturing

    with pytest.raises(CaptureCancelled):
        await task


@pytest.mark.asyncio
async def test_new_capture_is_accepted_right_after_cancel(voice, recognizer, settle) -> None:
    first = asyncio.create_task(voice.capture_utterance())
    await settle()
    voice.cancel_capture()

    second = asyncio.create_task(voice.capture_utterance())
    await settle()
    recognizer.push("Second try", is_final=True)

    with pytest.raises(CaptureCancelled):
        await first
    assert await second == "Second try"


@pytest.mark.asyncio
async def test_capture_times_out_without_speech(voice) -> None:
    with pytest.raises(NoSpeechDetected):
        await voice.capture_utterance()
    assert not voice.is_capturing


@pytest.mark.asyncio
async def test_capture_without_final_event_reports_no_speech(voice, recognizer) -> None:
    recognizer.push("mumble", is_final=False)
    recognizer.end_stream()

    with pytest.raises(NoSpeechDetected):
        await voice.capture_utterance()


@pytest.mark.asyncio
async def test_partial_events_reset_the_inactivity_window(recognizer, synthesizer) -> None:
    voice = VoiceIO(recognizer, synthesizer, VoiceIOConfig(inactivity_timeout_s=0.3))
    task = asyncio.create_task(voice.capture_utterance())

    for _ in range(4):
        await asyncio.sleep(0.1)
        recognizer.push("still talking", is_final=False)
    recognizer.push("Still talking after all", is_final=True)

    assert await task == "Still talking after all"


@pytest.mark.asyncio
async def test_recognizer_failure_is_wrapped(voice, recognizer) -> None:
    recognizer.error = RuntimeError("device lost")

    with pytest.raises(CaptureError, match="device lost") as exc_info:
        await voice.capture_utterance()
    assert not isinstance(exc_info.value, NoSpeechDetected)
    assert not voice.is_capturing


@pytest.mark.asyncio
async def test_unsupported_platform() -> None:
    voice = VoiceIO()

    assert not voice.capabilities().capture_supported
    assert not voice.capabilities().synthesis_supported
    with pytest.raises(CaptureUnsupported):
        await voice.capture_utterance()
    with pytest.raises(PlaybackUnsupported):
        await voice.speak("Hello")


def test_capabilities_are_cached_until_refreshed(recognizer, synthesizer) -> None:
    recognizer.available = False
    voice = VoiceIO(recognizer, synthesizer)
    assert not voice.capabilities().capture_supported

    recognizer.available = True
    assert not voice.capabilities().capture_supported
    assert voice.refresh_capabilities().capture_supported


def test_failing_probe_reports_unsupported(synthesizer) -> None:
    class BrokenRecognizer:
        def is_available(self) -> bool:
            raise OSError("no audio backend")

        def listen(self):
            raise AssertionError("listen should not be called")

    voice = VoiceIO(BrokenRecognizer(), synthesizer)
    assert not voice.capabilities().capture_supported
    assert voice.capabilities().synthesis_supported


def test_cancels_with_nothing_outstanding_are_noops(voice) -> None:
    voice.cancel_capture()
    voice.cancel_capture()
    voice.cancel_speaking()
    voice.cancel_speaking()
    assert not voice.is_capturing
    assert not voice.is_speaking


@pytest.mark.asyncio
async def test_speak_sends_normalized_text_and_options(voice, synthesizer) -> None:
    options = SpeechOptions(rate=1.1, pitch=0.9, volume=0.5)
    await voice.speak("**Welcome!** Let's begin 🎉", options)

    assert synthesizer.spoken == ["Welcome! Let's begin"]
    assert synthesizer.options == [options]
    assert not voice.is_speaking


@pytest.mark.asyncio
async def test_speak_uses_default_options(voice, synthesizer) -> None:
    await voice.speak("Hello")
    assert synthesizer.options == [SpeechOptions()]


@pytest.mark.asyncio
async def test_unspeakable_text_resolves_without_audio(voice, synthesizer) -> None:
    await voice.speak("```\n```  🎉")
    assert synthesizer.spoken == []


@pytest.mark.asyncio
async def test_cancel_speaking_settles_pending_speak(voice, synthesizer, settle) -> None:
    synthesizer.gate = asyncio.Event()
    task = asyncio.create_task(voice.speak("A long answer"))
    await settle()
    assert voice.is_speaking

    voice.cancel_speaking()
    assert not voice.is_speaking

    with pytest.raises(PlaybackCancelled):
        await task
    assert synthesizer.cancelled == 1


@pytest.mark.asyncio
async def test_new_utterance_replaces_current_one(voice, synthesizer, settle) -> None:
    synthesizer.gate = asyncio.Event()
    first = asyncio.create_task(voice.speak("First reply"))
    await settle()
    second = asyncio.create_task(voice.speak("Second reply"))
    await settle()

    with pytest.raises(PlaybackCancelled):
        await first

    synthesizer.gate.set()
    await second
    assert synthesizer.spoken == ["First reply", "Second reply"]
    assert not voice.is_speaking


@pytest.mark.asyncio
async def test_synthesizer_failure_is_wrapped(voice, synthesizer) -> None:
    synthesizer.error = RuntimeError("boom")

    with pytest.raises(PlaybackError, match="boom") as exc_info:
        await voice.speak("Hello")
    assert not isinstance(exc_info.value, PlaybackCancelled)
    assert not voice.is_speaking
