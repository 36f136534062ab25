"""Local voice subsystem.

This package provides the voice I/O channel for the interview:

mic -> STT -> turn controller -> TTS -> speaker

`VoiceIO` is the normalized adapter; the recognizer and synthesizer behind
it are pluggable. The turn controller remains the single authority for
interview flow.
"""

from mock_interviewer.voice.audio_io import AudioIO, AudioIOConfig
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
from mock_interviewer.voice.stt import (
    MicrophoneRecognizer,
    MicrophoneRecognizerConfig,
    STTConfig,
    TranscriptionResult,
    WhisperSTT,
)
from mock_interviewer.voice.tts import PiperSynthesizer, PiperTTS, TTSConfig
from mock_interviewer.voice.voice_io import (
    RecognitionEvent,
    SpeechOptions,
    SpeechRecognizer,
    SpeechSynthesizer,
    VoiceCapabilities,
    VoiceIO,
    VoiceIOConfig,
)

__all__ = [
    "AudioIO",
    "AudioIOConfig",
    "CaptureBusy",
    "CaptureCancelled",
    "CaptureError",
    "CaptureUnsupported",
    "NoSpeechDetected",
    "PlaybackCancelled",
    "PlaybackError",
    "PlaybackUnsupported",
    "VoiceIOError",
    "normalize_for_speech",
    "MicrophoneRecognizer",
    "MicrophoneRecognizerConfig",
    "STTConfig",
    "TranscriptionResult",
    "WhisperSTT",
    "PiperSynthesizer",
    "PiperTTS",
    "TTSConfig",
    "RecognitionEvent",
    "SpeechOptions",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "VoiceCapabilities",
    "VoiceIO",
    "VoiceIOConfig",
]
