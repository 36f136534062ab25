"""
Interview state management.

Holds the mutable transcript of one interview session. Only the turn
controller mutates it; everyone else receives `InterviewSession` snapshots.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID, uuid4

from mock_interviewer.models.llm_client import Message as LLMMessage
from mock_interviewer.session.schemas import (
    Feedback,
    InterviewSession,
    InterviewSetup,
    Message,
    Sender,
)

_LLM_ROLES = {Sender.USER: "user", Sender.AI: "assistant"}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class InterviewState:
    """
    Manages the mutable state of an interview session.

    The transcript is append-only and timestamps never go backwards. The
    session can be completed exactly once, after which it is immutable.
    """

    def __init__(
        self,
        setup: InterviewSetup,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize interview state.

        Args:
            setup: Interview setup; immutable for the life of the session.
            clock: Source of timestamps (defaults to UTC wall clock).
        """
        self._clock = clock or _now_utc
        self._session_id: UUID = uuid4()
        self._setup = setup
        self._messages: list[Message] = []
        self._started_at: datetime = self._clock()
        self._ended_at: datetime | None = None
        self._feedback: Feedback | None = None

    @property
    def session_id(self) -> UUID:
        """Get the unique session identifier."""
        return self._session_id

    @property
    def setup(self) -> InterviewSetup:
        """Get the interview setup."""
        return self._setup

    @property
    def messages(self) -> tuple[Message, ...]:
        """Get the transcript."""
        return tuple(self._messages)

    @property
    def started_at(self) -> datetime:
        """Get the session start time."""
        return self._started_at

    @property
    def feedback(self) -> Feedback | None:
        """Get the terminal feedback, if the session has ended."""
        return self._feedback

    @property
    def is_complete(self) -> bool:
        """Check if the session has ended."""
        return self._ended_at is not None

    def add_message(self, sender: Sender, content: str) -> Message:
        """
        Append a message to the transcript.

        Args:
            sender: Who sent the message.
            content: Raw message text.

        Returns:
            The created Message.

        Raises:
            RuntimeError: If the session has already been completed.
        """
        if self.is_complete:
            raise RuntimeError("Interview session has already been completed.")

        timestamp = self._clock()
        if self._messages and timestamp < self._messages[-1].timestamp:
            timestamp = self._messages[-1].timestamp

        message = Message(content=content, sender=sender, timestamp=timestamp)
        self._messages.append(message)
        return message

    def complete(self, feedback: Feedback) -> InterviewSession:
        """
        Mark the session as ended and attach its feedback.

        Args:
            feedback: Terminal feedback for the session.

        Returns:
            The final, read-only session.

        Raises:
            RuntimeError: If the session has already been completed.
        """
        if self.is_complete:
            raise RuntimeError("Interview session has already been completed.")

        ended_at = self._clock()
        if ended_at < self._started_at:
            ended_at = self._started_at
        self._ended_at = ended_at
        self._feedback = feedback
        return self.snapshot()

    def snapshot(self) -> InterviewSession:
        """Build a read-only view of the session as it stands."""
        return InterviewSession(
            session_id=self._session_id,
            setup=self._setup,
            messages=tuple(self._messages),
            start_time=self._started_at,
            end_time=self._ended_at,
            feedback=self._feedback,
        )

    def conversation_history(self) -> list[LLMMessage]:
        """
        Get the transcript in a format suitable for the completion service.

        Returns:
            Role-tagged messages (`user` / `assistant`) in conversational order.
        """
        return [LLMMessage(role=_LLM_ROLES[m.sender], content=m.content) for m in self._messages]
