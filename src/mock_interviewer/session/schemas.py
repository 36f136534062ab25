"""
Pydantic schemas for interview sessions.

Defines the interview setup, transcript messages, terminal feedback and the
read-only session view handed to the presentation layer.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class Difficulty(str, Enum):
    """How demanding the interviewer's questions are."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Personality(str, Enum):
    """Interviewer persona."""

    INTIMIDATOR = "intimidator"
    FRIENDLY = "friendly"
    ROBOTIC = "robotic"
    CURVEBALL = "curveball"


class Sender(str, Enum):
    """Who produced a transcript message."""

    USER = "user"
    AI = "ai"


class InterviewSetup(BaseModel):
    """Configuration chosen before an interview starts."""

    model_config = ConfigDict(frozen=True)

    industry: str = Field(..., min_length=1, description="Industry the interview targets")
    difficulty: Difficulty = Field(..., description="Question difficulty")
    personality: Personality = Field(..., description="Interviewer persona")
    role: str | None = Field(default=None, description="Role being interviewed for")
    company: str | None = Field(default=None, description="Company being interviewed for")


class Message(BaseModel):
    """A single turn in the interview transcript."""

    model_config = ConfigDict(frozen=True)

    message_id: UUID = Field(default_factory=uuid4, description="Unique message identifier")
    content: str = Field(..., description="Raw message text")
    sender: Sender = Field(..., description="Who sent the message")
    timestamp: datetime = Field(default_factory=_now_utc, description="When the message was added")


class DetailedFeedback(BaseModel):
    """Per-area scores, each 0-100."""

    model_config = ConfigDict(frozen=True)

    communication: int = Field(..., ge=0, le=100)
    technical_knowledge: int = Field(..., ge=0, le=100)
    problem_solving: int = Field(..., ge=0, le=100)
    cultural_fit: int = Field(..., ge=0, le=100)


class Feedback(BaseModel):
    """Terminal assessment produced once, when the interview ends."""

    model_config = ConfigDict(frozen=True)

    confidence_score: int = Field(..., ge=0, le=100, description="Overall confidence score (0-100)")
    strengths: list[str] = Field(default_factory=list, description="Observed strengths")
    improvements: list[str] = Field(default_factory=list, description="Suggested improvements")
    overall_rating: int = Field(..., ge=1, le=5, description="Overall rating (1-5)")
    detailed_feedback: DetailedFeedback = Field(..., description="Per-area scores")


class InterviewSession(BaseModel):
    """Read-only view of an interview session."""

    model_config = ConfigDict(frozen=True)

    session_id: UUID = Field(..., description="Unique session identifier")
    setup: InterviewSetup = Field(..., description="Setup the session was started with")
    messages: tuple[Message, ...] = Field(default=(), description="Transcript in conversational order")
    start_time: datetime = Field(..., description="When the session started")
    end_time: datetime | None = Field(default=None, description="When the session ended")
    feedback: Feedback | None = Field(default=None, description="Terminal feedback, once ended")

    @property
    def is_complete(self) -> bool:
        """Check if the session has ended."""
        return self.end_time is not None
