"""
Application configuration using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Remote completion service (OpenAI-compatible chat completions)
    completion_api_key: str | None = Field(
        default=None,
        description="Bearer credential for the completion service; unset means scripted demo mode",
    )
    completion_api_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="Chat completions endpoint",
    )
    completion_model: str = Field(
        default="deepseek/deepseek-r1",
        description="Model identifier sent with each request",
    )
    completion_max_tokens: int = Field(
        default=300,
        description="Token cap for interviewer replies",
    )
    completion_temperature: float = Field(
        default=0.7,
        description="Sampling temperature for interviewer replies",
    )
    completion_timeout: float = Field(
        default=30.0,
        description="Seconds to wait for the completion service before using a scripted reply",
    )

    # Feedback
    feedback_timeout: float = Field(
        default=45.0,
        description="Seconds to wait for feedback scoring before using the neutral record",
    )

    # Capture
    capture_inactivity_timeout: float = Field(
        default=10.0,
        description="Seconds of recognizer inactivity before a capture gives up",
    )
    capture_end_silence_ms: int = Field(
        default=900,
        description="Trailing silence that marks the end of an utterance",
    )
    capture_speech_rms_threshold: float = Field(
        default=0.015,
        description="Microphone RMS level treated as speech",
    )
    max_silent_captures: int = Field(
        default=3,
        description="Consecutive silent capture windows before auto-listen pauses",
    )

    # Playback
    speech_rate: float = Field(default=0.9, description="Speaking rate multiplier")
    speech_pitch: float = Field(default=1.0, description="Pitch multiplier")
    speech_volume: float = Field(default=0.8, description="Playback volume (0-1)")

    # STT (faster-whisper)
    stt_model: str = Field(default="small", description="faster-whisper model size")
    stt_device: str = Field(default="cpu", description="STT device (cpu, cuda, auto)")
    stt_language: str | None = Field(default="en", description="Transcription language")

    # TTS (Piper)
    piper_bin: str = Field(default="piper", description="Piper TTS binary")
    piper_model: str | None = Field(default=None, description="Path to a Piper .onnx voice")
    piper_timeout: float = Field(default=60.0, description="Seconds per Piper synthesis chunk")

    # Persistence
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/interviews.db",
        description="SQLAlchemy async connection string for completed sessions",
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
