"""Speech-to-text (offline).

`WhisperSTT` wraps `faster-whisper`; `MicrophoneRecognizer` turns a live
microphone stream into recognition events using RMS energy voice-activity
detection and a final Whisper pass over the captured utterance.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from importlib.util import find_spec

import numpy as np

from mock_interviewer.voice.audio_io import AudioIO
from mock_interviewer.voice.voice_io import RecognitionEvent

logger = logging.getLogger(__name__)

WHISPER_SAMPLE_RATE = 16000


@dataclass(frozen=True)
class STTConfig:
    model_size: str = "small"
    # Default to CPU to avoid hard crashes when CUDA/cuDNN aren't present.
    device: str = "cpu"  # cpu|cuda|auto
    compute_type: str | None = None  # e.g. int8, float16
    language: str | None = None
    vad_filter: bool = True


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    avg_logprob: float | None = None
    no_speech_prob: float | None = None


class WhisperSTT:
    """faster-whisper wrapper over in-memory audio."""

    def __init__(self, config: STTConfig | None = None) -> None:
        self._config = config or STTConfig()
        self._model = None

    @property
    def config(self) -> STTConfig:
        return self._config

    def _load_model(self):
        if self._model is not None:
            return self._model

        try:
            from faster_whisper import WhisperModel  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "faster-whisper is required for STT. Install with: pip install -e '.[voice]'"
            ) from e

        device = "cpu" if self._config.device == "auto" else self._config.device
        kwargs = {}
        if self._config.compute_type:
            kwargs["compute_type"] = self._config.compute_type

        logger.info(f"[VOICE][STT] loading whisper model={self._config.model_size} device={device}")
        self._model = WhisperModel(self._config.model_size, device=device, **kwargs)
        return self._model

    async def transcribe(self, audio: np.ndarray, sample_rate: int) -> TranscriptionResult:
        samples = audio.astype(np.float32).reshape(-1)
        if sample_rate != WHISPER_SAMPLE_RATE and samples.size:
            target = int(samples.size * WHISPER_SAMPLE_RATE / sample_rate)
            samples = np.interp(
                np.linspace(0, samples.size - 1, num=max(1, target)),
                np.arange(samples.size),
                samples,
            ).astype(np.float32)

        def _run() -> TranscriptionResult:
            model = self._load_model()
            segments, _info = model.transcribe(
                samples,
                language=self._config.language,
                vad_filter=self._config.vad_filter,
            )
            segments = list(segments)
            text = " ".join(s.text.strip() for s in segments if s.text and s.text.strip()).strip()
            if not segments:
                return TranscriptionResult(text=text)
            return TranscriptionResult(
                text=text,
                avg_logprob=float(np.mean([s.avg_logprob for s in segments])),
                no_speech_prob=float(max(s.no_speech_prob for s in segments)),
            )

        return await asyncio.to_thread(_run)


@dataclass(frozen=True)
class MicrophoneRecognizerConfig:
    speech_rms_threshold: float = 0.015
    end_silence_ms: int = 900
    partial_interval_s: float = 1.0
    max_utterance_s: float = 30.0
    min_transcript_chars: int = 2
    # Confidence heuristics (faster-whisper):
    min_avg_logprob: float = -1.2
    max_no_speech_prob: float = 0.9


class MicrophoneRecognizer:
    """Recognizer backend for `VoiceIO` built on the local microphone."""

    def __init__(
        self,
        audio: AudioIO,
        stt: WhisperSTT,
        config: MicrophoneRecognizerConfig | None = None,
    ) -> None:
        self._audio = audio
        self._stt = stt
        self._config = config or MicrophoneRecognizerConfig()

    def is_available(self) -> bool:
        if find_spec("faster_whisper") is None:
            logger.info("[VOICE][STT] faster-whisper not installed; capture disabled")
            return False
        return self._audio.has_input_device()

    def _is_confident(self, result: TranscriptionResult) -> bool:
        cfg = self._config
        if len(result.text.strip()) < cfg.min_transcript_chars:
            return False
        if result.no_speech_prob is not None and result.no_speech_prob > cfg.max_no_speech_prob:
            return False
        if result.avg_logprob is not None and result.avg_logprob < cfg.min_avg_logprob:
            return False
        return True

    async def listen(self) -> AsyncGenerator[RecognitionEvent, None]:
        cfg = self._config
        sample_rate = self._audio.config.sample_rate
        frames: list[np.ndarray] = []
        heard_speech = False
        speech_s = 0.0
        silence_s = 0.0
        last_partial_s = 0.0

        stream = self._audio.stream_frames()
        try:
            async for frame in stream:
                duration = len(frame) / sample_rate
                if AudioIO.rms(frame) >= cfg.speech_rms_threshold:
                    heard_speech = True
                    silence_s = 0.0
                elif heard_speech:
                    silence_s += duration

                if not heard_speech:
                    continue

                frames.append(frame[:, 0] if frame.ndim > 1 else frame)
                speech_s += duration
                if speech_s - last_partial_s >= cfg.partial_interval_s:
                    last_partial_s = speech_s
                    yield RecognitionEvent(text="", is_final=False)

                if silence_s * 1000 >= cfg.end_silence_ms or speech_s >= cfg.max_utterance_s:
                    break
        finally:
            await stream.aclose()

        if not frames:
            return

        logger.info(f"[VOICE][STT] utterance captured seconds={speech_s:.1f}")
        yield RecognitionEvent(text="", is_final=False)

        # Keep the consumer's inactivity window open while Whisper runs.
        transcription = asyncio.ensure_future(self._stt.transcribe(np.concatenate(frames), sample_rate))
        try:
            while True:
                done, _ = await asyncio.wait({transcription}, timeout=cfg.partial_interval_s)
                if done:
                    break
                yield RecognitionEvent(text="", is_final=False)
        finally:
            if not transcription.done():
                transcription.cancel()

        result = transcription.result()
        if not self._is_confident(result):
            logger.info(
                f"[VOICE][STT] low-confidence transcript dropped chars={len(result.text)} "
                f"avg_logprob={result.avg_logprob} no_speech_prob={result.no_speech_prob}"
            )
            return

        yield RecognitionEvent(text=result.text.strip(), is_final=True)
