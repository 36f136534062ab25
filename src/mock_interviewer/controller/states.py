"""
Turn-taking states.

The controller keeps one enumerated state; the four status flags shown to
the user are a pure projection of it, so at most one of listening,
speaking and AI-responding can ever be true.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal


class TurnState(str, Enum):
    """Where the interview currently is in its turn cycle."""

    IDLE = "idle"
    STARTING = "starting"
    WAITING_FOR_USER = "waiting_for_user"
    AI_RESPONDING = "ai_responding"
    SPEAKING = "speaking"
    LISTENING = "listening"
    ENDED = "ended"


@dataclass(frozen=True)
class VoiceStatus:
    is_listening: bool = False
    is_speaking: bool = False
    is_ai_responding: bool = False
    is_voice_enabled: bool = False


def project_status(state: TurnState, voice_enabled: bool) -> VoiceStatus:
    """Derive the user-facing flags from the turn state."""
    return VoiceStatus(
        is_listening=state == TurnState.LISTENING,
        is_speaking=state == TurnState.SPEAKING,
        is_ai_responding=state in (TurnState.STARTING, TurnState.AI_RESPONDING),
        is_voice_enabled=voice_enabled,
    )


@dataclass(frozen=True)
class Notice:
    """A transient, dismissible message for the user."""

    level: Literal["info", "error"]
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InvalidTransitionError(RuntimeError):
    """Raised when an action is not legal in the current turn state."""
