"""Text-to-speech (offline).

`PiperTTS` drives the Piper CLI; `PiperSynthesizer` is the `VoiceIO`
synthesis backend that speaks each chunk through `AudioIO`. Synthesized
WAVs live in a temporary directory and are never kept.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

from mock_interviewer.voice.audio_io import AudioIO
from mock_interviewer.voice.voice_io import SpeechOptions

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True)
class TTSConfig:
    piper_bin: str = "piper"
    model_path: str | None = None  # path to *.onnx
    speaker_id: int | None = None
    max_chars_per_chunk: int = 350
    timeout_s: float = 60.0


class PiperTTS:
    def __init__(self, config: TTSConfig | None = None) -> None:
        self._config = config or TTSConfig()
        self._validated_piper_path: str | None = None

    @property
    def config(self) -> TTSConfig:
        return self._config

    def is_available(self) -> tuple[bool, str]:
        try:
            self._require_piper()
            return True, "ok"
        except RuntimeError as e:
            return False, str(e)

    def _looks_like_piper_tts(self, piper_path: str) -> bool:
        try:
            r = subprocess.run(
                [piper_path, "--help"],
                check=False,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=5,
            )
        except (OSError, subprocess.SubprocessError):
            return False

        out = (r.stdout or "").lower()
        # /usr/bin/piper on many distros is an unrelated GTK app.
        return ("--model" in out or "--output_file" in out) and "application options" not in out

    def _require_piper(self) -> str:
        if self._validated_piper_path:
            return self._validated_piper_path

        p = shutil.which(self._config.piper_bin)
        if not p:
            raise RuntimeError(
                "piper CLI not found. Install Piper TTS and ensure it's on PATH, "
                "or set MOCK_INTERVIEWER_PIPER_BIN to the binary path."
            )
        if not self._looks_like_piper_tts(p):
            raise RuntimeError(
                f"Found `{p}`, but it does not look like the Piper TTS CLI. "
                "Set MOCK_INTERVIEWER_PIPER_BIN to the Piper TTS binary."
            )
        if not self._config.model_path:
            raise RuntimeError(
                "Piper voice model not configured. Set MOCK_INTERVIEWER_PIPER_MODEL=/path/to/voice.onnx."
            )

        self._validated_piper_path = p
        return p

    def chunk_text(self, text: str) -> list[str]:
        """Pack sentences into chunks of at most `max_chars_per_chunk`."""
        t = (text or "").strip()
        if not t:
            return []

        limit = self._config.max_chars_per_chunk
        chunks: list[str] = []
        current = ""
        for sentence in (s.strip() for s in _SENTENCE_SPLIT_RE.split(t)):
            if not sentence:
                continue
            while len(sentence) > limit:
                if current:
                    chunks.append(current)
                    current = ""
                chunks.append(sentence[:limit])
                sentence = sentence[limit:].lstrip()
            if not current:
                current = sentence
            elif len(current) + 1 + len(sentence) <= limit:
                current = f"{current} {sentence}"
            else:
                chunks.append(current)
                current = sentence
        if current:
            chunks.append(current)
        return chunks

    async def synthesize_to_wav(
        self,
        text: str,
        wav_path: str | Path,
        *,
        length_scale: float | None = None,
    ) -> Path:
        """Synthesize one chunk; the Piper process is killed if the caller is cancelled."""
        piper_bin = self._require_piper()
        wav_path = Path(wav_path)

        cmd = [piper_bin, "--model", str(self._config.model_path), "--output_file", str(wav_path)]
        if self._config.speaker_id is not None:
            cmd += ["--speaker", str(self._config.speaker_id)]
        if length_scale is not None:
            cmd += ["--length_scale", f"{length_scale:.3f}"]

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                proc.communicate(text.encode("utf-8")),
                timeout=self._config.timeout_s,
            )
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise RuntimeError(
                f"piper timed out after {self._config.timeout_s:.1f}s. model={self._config.model_path!s}"
            ) from e
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()
            raise RuntimeError(
                f"piper failed (exit={proc.returncode}). model={self._config.model_path!s}. "
                f"stderr={detail or '<empty>'}"
            )
        return wav_path


class PiperSynthesizer:
    """Synthesis backend for `VoiceIO`: Piper chunks played through `AudioIO`."""

    def __init__(self, tts: PiperTTS, audio: AudioIO) -> None:
        self._tts = tts
        self._audio = audio
        self._available: bool | None = None

    def is_available(self) -> bool:
        if self._available is None:
            ok, reason = self._tts.is_available()
            if ok and not self._audio.has_output_device():
                ok, reason = False, "no audio output device"
            if not ok:
                logger.warning(f"[VOICE][TTS] disabled: {reason}")
            self._available = ok
        return self._available

    async def speak(self, text: str, options: SpeechOptions) -> None:
        length_scale = 1.0 / options.rate if options.rate > 0 else None
        chunks = self._tts.chunk_text(text)

        with tempfile.TemporaryDirectory(prefix="mock_interviewer_tts_") as tmp:
            for idx, chunk in enumerate(chunks):
                wav = await self._tts.synthesize_to_wav(
                    chunk,
                    Path(tmp) / f"utterance_{idx:02d}.wav",
                    length_scale=length_scale,
                )
                audio, sr = self._audio.read_wav(wav)
                logger.debug(f"[VOICE][TTS] playing chunk={idx} samples={len(audio)}")
                await self._audio.play(audio, sr, volume=options.volume, pitch=options.pitch)
