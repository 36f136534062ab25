import asyncio
from pathlib import Path

import numpy as np
import pytest

from mock_interviewer.voice.audio_io import AudioIOConfig
from mock_interviewer.voice.stt import MicrophoneRecognizer, MicrophoneRecognizerConfig, TranscriptionResult
from mock_interviewer.voice.tts import PiperSynthesizer, PiperTTS, TTSConfig
from mock_interviewer.voice.voice_io import RecognitionEvent, SpeechOptions, VoiceIO, VoiceIOConfig

LOUD = np.full(100, 0.5, dtype=np.float32)
QUIET = np.zeros(100, dtype=np.float32)


class FakeAudio:
    def __init__(self, frames=()) -> None:
        self.config = AudioIOConfig(sample_rate=1000)
        self.frames = list(frames)
        self.stream_closed = False
        self.played: list[tuple[int, float, float]] = []
        self.output_device = True

    async def stream_frames(self):
        try:
            for frame in self.frames:
                yield frame
        finally:
            self.stream_closed = True

    def has_input_device(self) -> bool:
        return True

    def has_output_device(self) -> bool:
        return self.output_device

    def read_wav(self, wav_path):
        return np.zeros(10, dtype=np.float32), 22050

    async def play(self, audio, sample_rate, *, volume, pitch) -> None:
        self.played.append((sample_rate, volume, pitch))


class FakeSTT:
    def __init__(self, result: TranscriptionResult) -> None:
        self.result = result
        self.calls: list[tuple[int, int]] = []

    async def transcribe(self, audio, sample_rate):
        self.calls.append((audio.size, sample_rate))
        return self.result


class RecordingPiper(PiperTTS):
    def __init__(self, config: TTSConfig | None = None, available: bool = True) -> None:
        super().__init__(config)
        self.available = available
        self.calls: list[tuple[str, float | None]] = []

    def is_available(self) -> tuple[bool, str]:
        return (True, "ok") if self.available else (False, "piper missing")

    async def synthesize_to_wav(self, text, wav_path, *, length_scale=None) -> Path:
        self.calls.append((text, length_scale))
        return Path(wav_path)


async def _collect(recognizer: MicrophoneRecognizer) -> list[RecognitionEvent]:
    return [event async for event in recognizer.listen()]


def _recognizer(audio: FakeAudio, stt: FakeSTT) -> MicrophoneRecognizer:
    return MicrophoneRecognizer(audio, stt, MicrophoneRecognizerConfig(end_silence_ms=450, partial_interval_s=0.5))


def test_chunk_text_packs_sentences() -> None:
    tts = PiperTTS(TTSConfig(max_chars_per_chunk=20))

    assert tts.chunk_text("Hello there. How are you today? Fine.") == [
        "Hello there.",
        "How are you today?",
        "Fine.",
    ]
    assert tts.chunk_text("Hi. Yes.") == ["Hi. Yes."]
    assert tts.chunk_text("a" * 45) == ["a" * 20, "a" * 20, "a" * 5]
    assert tts.chunk_text("   ") == []


def test_missing_piper_binary_is_reported() -> None:
    ok, reason = PiperTTS(TTSConfig(piper_bin="definitely-not-a-piper-binary")).is_available()

    assert not ok
    assert "MOCK_INTERVIEWER_PIPER_BIN" in reason


@pytest.mark.asyncio
async def test_microphone_utterance_yields_partials_then_final() -> None:
    audio = FakeAudio([QUIET] * 2 + [LOUD] * 12 + [QUIET] * 10)
    stt = FakeSTT(TranscriptionResult(text=" I love testing ", avg_logprob=-0.3, no_speech_prob=0.1))

    events = await _collect(_recognizer(audio, stt))

    assert events[-1] == RecognitionEvent(text="I love testing", is_final=True)
    assert len(events) >= 2
    assert all(not e.is_final for e in events[:-1])
    assert len(stt.calls) == 1
    samples, sample_rate = stt.calls[0]
    assert sample_rate == 1000
    assert samples >= 1200
    assert audio.stream_closed


@pytest.mark.asyncio
async def test_low_confidence_transcript_is_dropped() -> None:
    audio = FakeAudio([LOUD] * 6 + [QUIET] * 10)
    stt = FakeSTT(TranscriptionResult(text="uh", avg_logprob=-0.2, no_speech_prob=0.95))

    events = await _collect(_recognizer(audio, stt))

    assert events
    assert not any(e.is_final for e in events)


@pytest.mark.asyncio
async def test_silence_yields_nothing() -> None:
    audio = FakeAudio([QUIET] * 20)
    stt = FakeSTT(TranscriptionResult(text="ghost"))

    assert await _collect(_recognizer(audio, stt)) == []
    assert stt.calls == []
    assert audio.stream_closed


@pytest.mark.asyncio
async def test_piper_synthesizer_speaks_each_chunk() -> None:
    tts = RecordingPiper(TTSConfig(max_chars_per_chunk=20))
    audio = FakeAudio()
    synthesizer = PiperSynthesizer(tts, audio)

    await synthesizer.speak("Hello there. How are you today?", SpeechOptions(rate=0.8, pitch=1.1, volume=0.6))

    assert [text for text, _ in tts.calls] == ["Hello there.", "How are you today?"]
    assert all(scale == pytest.approx(1.25) for _, scale in tts.calls)
    assert audio.played == [(22050, 0.6, 1.1), (22050, 0.6, 1.1)]


def test_piper_synthesizer_availability_is_cached() -> None:
    tts = RecordingPiper(available=False)
    synthesizer = PiperSynthesizer(tts, FakeAudio())

    assert not synthesizer.is_available()
    tts.available = True
    assert not synthesizer.is_available()


def test_piper_synthesizer_needs_output_device() -> None:
    audio = FakeAudio()
    audio.output_device = False

    assert not PiperSynthesizer(RecordingPiper(), audio).is_available()


class SlowSTT(FakeSTT):
    started = 0

    async def transcribe(self, audio, sample_rate):
        self.started += 1
        await asyncio.sleep(0.5)
        return await super().transcribe(audio, sample_rate)


class AvailableMicrophone(MicrophoneRecognizer):
    def is_available(self) -> bool:
        return True


@pytest.mark.asyncio
async def test_slow_transcription_outlasts_inactivity_window() -> None:
    audio = FakeAudio([LOUD] * 6 + [QUIET] * 10)
    stt = SlowSTT(TranscriptionResult(text="A long considered answer", avg_logprob=-0.2, no_speech_prob=0.05))
    recognizer = AvailableMicrophone(audio, stt, MicrophoneRecognizerConfig(end_silence_ms=450, partial_interval_s=0.1))
    voice = VoiceIO(recognizer, None, VoiceIOConfig(inactivity_timeout_s=0.3))

    assert await voice.capture_utterance() == "A long considered answer"
    assert len(stt.calls) == 1


@pytest.mark.asyncio
async def test_pending_transcription_is_cancelled_with_the_stream() -> None:
    audio = FakeAudio([LOUD] * 6 + [QUIET] * 10)
    stt = SlowSTT(TranscriptionResult(text="never delivered"))
    recognizer = MicrophoneRecognizer(audio, stt, MicrophoneRecognizerConfig(end_silence_ms=450, partial_interval_s=0.05))

    events = recognizer.listen()
    while not stt.started:
        assert not (await events.__anext__()).is_final
    assert not (await events.__anext__()).is_final
    await events.aclose()
    await asyncio.sleep(0.6)

    assert stt.started == 1
    assert stt.calls == []
