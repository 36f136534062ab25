"""
Repository pattern for database operations.

Provides a clean abstraction over SQLAlchemy for CRUD operations.
"""

from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mock_interviewer.db.models import Base, InterviewSessionModel, MessageModel
from mock_interviewer.session.schemas import (
    Difficulty,
    Feedback,
    InterviewSession,
    InterviewSetup,
    Message,
    Personality,
    Sender,
)

T = TypeVar("T", bound=Base)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; stored values are always UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseRepository(Generic[T]):
    """Base repository with common write operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def create(self, entity: T) -> T:
        """
        Create a new entity.

        Args:
            entity: The entity to create.

        Returns:
            The created entity.
        """
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def delete(self, entity: T) -> None:
        """
        Delete an entity.

        Args:
            entity: The entity to delete.
        """
        await self._session.delete(entity)
        await self._session.flush()


class InterviewSessionRepository(BaseRepository[InterviewSessionModel]):
    """Repository for interview session operations."""

    async def get_with_messages(self, session_id: UUID) -> InterviewSessionModel | None:
        """
        Get a session with its transcript eagerly loaded.

        Args:
            session_id: Session UUID.

        Returns:
            The session if found, None otherwise.
        """
        stmt = (
            select(InterviewSessionModel)
            .options(selectinload(InterviewSessionModel.messages))
            .where(InterviewSessionModel.id == session_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def save_session(self, session: InterviewSession) -> InterviewSessionModel:
        """
        Save an interview session, replacing any earlier copy.

        Args:
            session: Session snapshot to save.

        Returns:
            The created session model.
        """
        existing = await self.get_with_messages(session.session_id)
        if existing is not None:
            await self.delete(existing)

        setup = session.setup
        model = InterviewSessionModel(
            id=session.session_id,
            industry=setup.industry,
            difficulty=setup.difficulty.value,
            personality=setup.personality.value,
            role=setup.role,
            company=setup.company,
            feedback=session.feedback.model_dump(mode="json") if session.feedback else None,
            started_at=session.start_time,
            ended_at=session.end_time,
        )

        for i, message in enumerate(session.messages):
            model.messages.append(
                MessageModel(
                    id=message.message_id,
                    sequence=i,
                    sender=message.sender.value,
                    content=message.content,
                    timestamp=message.timestamp,
                )
            )

        return await self.create(model)

    async def get_recent(self, limit: int = 10) -> list[InterviewSessionModel]:
        """
        Get recent sessions, newest first.

        Args:
            limit: Maximum number to return.

        Returns:
            List of recent sessions.
        """
        stmt = (
            select(InterviewSessionModel)
            .options(selectinload(InterviewSessionModel.messages))
            .order_by(InterviewSessionModel.started_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def to_session(model: InterviewSessionModel) -> InterviewSession:
        """
        Convert a loaded model to an InterviewSession snapshot.

        Args:
            model: Session model with its messages loaded.

        Returns:
            InterviewSession schema.
        """
        return InterviewSession(
            session_id=model.id,
            setup=InterviewSetup(
                industry=model.industry,
                difficulty=Difficulty(model.difficulty),
                personality=Personality(model.personality),
                role=model.role,
                company=model.company,
            ),
            messages=tuple(
                Message(
                    message_id=m.id,
                    content=m.content,
                    sender=Sender(m.sender),
                    timestamp=_as_utc(m.timestamp),
                )
                for m in model.messages
            ),
            start_time=_as_utc(model.started_at),
            end_time=_as_utc(model.ended_at),
            feedback=Feedback.model_validate(model.feedback) if model.feedback else None,
        )
