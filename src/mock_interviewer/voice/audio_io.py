"""Audio capture + playback (interview-agnostic).

This module is intentionally "dumb hardware I/O": it knows nothing about the
interview, prompts, or the completion service.

It provides:
- streaming microphone frames into the event loop
- WAV loading for synthesized speech
- speaker playback with volume gain and pitch via playback-rate scaling
- RMS energy for voice-activity detection
"""

from __future__ import annotations

import asyncio
import logging
import wave
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioIOConfig:
    sample_rate: int = 16000
    channels: int = 1
    block_ms: int = 30


class AudioIO:
    def __init__(self, config: AudioIOConfig | None = None) -> None:
        self._config = config or AudioIOConfig()

    @property
    def config(self) -> AudioIOConfig:
        return self._config

    @property
    def block_size(self) -> int:
        return max(1, int(self._config.sample_rate * self._config.block_ms / 1000))

    def _require_sounddevice(self):
        try:
            import sounddevice as sd  # type: ignore

            return sd
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "sounddevice is required for voice mode. Install with: pip install -e '.[voice]'. "
                "If you see 'PortAudio library not found', install PortAudio "
                "(Debian/Ubuntu: sudo apt-get install portaudio19-dev)."
            ) from e

    def _has_device(self, kind: str) -> bool:
        try:
            sd = self._require_sounddevice()
            sd.query_devices(kind=kind)
        except Exception as e:
            logger.debug(f"[VOICE][AUDIO] no default {kind} device: {e}")
            return False
        return True

    def has_input_device(self) -> bool:
        return self._has_device("input")

    def has_output_device(self) -> bool:
        return self._has_device("output")

    async def stream_frames(self) -> AsyncGenerator[np.ndarray, None]:
        """Yield float32 mic frames [block, channels] until the consumer stops."""
        sd = self._require_sounddevice()
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[np.ndarray] = asyncio.Queue()

        def callback(indata, frames, time, status):  # noqa: ANN001
            if status:
                logger.debug(f"Input status: {status}")
            loop.call_soon_threadsafe(queue.put_nowait, indata.copy())

        stream = sd.InputStream(
            samplerate=self._config.sample_rate,
            channels=self._config.channels,
            dtype="float32",
            blocksize=self.block_size,
            callback=callback,
        )
        await asyncio.to_thread(stream.start)
        logger.debug("[VOICE][AUDIO] input stream started")

        try:
            while True:
                yield await queue.get()
        finally:
            await asyncio.to_thread(stream.stop)
            await asyncio.to_thread(stream.close)
            logger.debug("[VOICE][AUDIO] input stream closed")

    def read_wav(self, wav_path: str | Path) -> tuple[np.ndarray, int]:
        """Load a 16-bit PCM WAV as int16 [samples, channels]."""
        wav_path = Path(wav_path)
        with wave.open(str(wav_path), "rb") as wf:
            sr = wf.getframerate()
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            if sampwidth != 2:
                raise ValueError(f"Only 16-bit WAV supported, got sampwidth={sampwidth}")
            frames = wf.readframes(wf.getnframes())

        audio = np.frombuffer(frames, dtype=np.int16)
        return audio.reshape(-1, max(1, n_channels)), sr

    async def play(
        self,
        audio: np.ndarray,
        sample_rate: int,
        *,
        volume: float = 1.0,
        pitch: float = 1.0,
    ) -> None:
        """Play audio to completion; cancelling the caller stops the device."""
        sd = self._require_sounddevice()

        samples = audio.astype(np.float32)
        if np.issubdtype(audio.dtype, np.integer):
            samples /= 32768.0
        if samples.ndim > 1 and samples.shape[-1] == 1:
            samples = samples.squeeze(-1)
        samples = np.clip(samples * max(0.0, volume), -1.0, 1.0)

        rate = max(1, int(sample_rate * pitch)) if pitch > 0 else sample_rate
        sd.play(samples, samplerate=rate, blocking=False)

        try:
            await asyncio.to_thread(sd.wait)
        except asyncio.CancelledError:
            sd.stop()
            logger.info("[VOICE][AUDIO] playback stopped")
            raise

    @staticmethod
    def rms(frame: np.ndarray) -> float:
        if frame.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(frame.astype(np.float32)))))
