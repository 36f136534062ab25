"""
Session stores.

The turn controller hands every finished session to a `SessionStoreBase`.
`SqlSessionStore` persists through the repository layer; the in-memory
store serves tests and runs without a database.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from uuid import UUID

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from mock_interviewer.config import get_settings
from mock_interviewer.db.models import Base
from mock_interviewer.db.repository import InterviewSessionRepository
from mock_interviewer.session.schemas import InterviewSession

logger = logging.getLogger(__name__)


class SessionStoreBase(ABC):
    """Abstract transcript persistence boundary."""

    @abstractmethod
    async def save(self, session: InterviewSession) -> None:
        """Persist a session snapshot."""
        ...

    @abstractmethod
    async def fetch(self, session_id: UUID) -> InterviewSession | None:
        """Load a session by id, or None if unknown."""
        ...

    @abstractmethod
    async def list_recent(self, limit: int = 10) -> list[InterviewSession]:
        """List the most recently started sessions, newest first."""
        ...


class InMemorySessionStore(SessionStoreBase):
    """Keeps sessions in a dict for the life of the process."""

    def __init__(self) -> None:
        self._sessions: dict[UUID, InterviewSession] = {}

    async def save(self, session: InterviewSession) -> None:
        self._sessions[session.session_id] = session

    async def fetch(self, session_id: UUID) -> InterviewSession | None:
        return self._sessions.get(session_id)

    async def list_recent(self, limit: int = 10) -> list[InterviewSession]:
        ordered = sorted(self._sessions.values(), key=lambda s: s.start_time, reverse=True)
        return ordered[:limit]


class SqlSessionStore(SessionStoreBase):
    """SQLAlchemy async store; the schema is created on first use."""

    def __init__(self, database_url: str | None = None, *, echo: bool = False) -> None:
        """
        Initialize the store.

        Args:
            database_url: Async SQLAlchemy URL (defaults to settings).
            echo: Log emitted SQL.
        """
        self._database_url = database_url or get_settings().database_url
        self._engine: AsyncEngine = create_async_engine(self._database_url, echo=echo)
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        self._schema_ready = False

    def _ensure_sqlite_directory(self) -> None:
        url = make_url(self._database_url)
        if url.get_backend_name() != "sqlite":
            return
        database = url.database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    async def init_schema(self) -> None:
        """Create tables if they do not exist yet."""
        if self._schema_ready:
            return
        self._ensure_sqlite_directory()
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self._schema_ready = True
        logger.info(f"Session store ready: {make_url(self._database_url).render_as_string(hide_password=True)}")

    async def save(self, session: InterviewSession) -> None:
        await self.init_schema()
        async with self._sessionmaker() as db:
            async with db.begin():
                await InterviewSessionRepository(db).save_session(session)
        logger.info(f"Saved session {session.session_id} ({len(session.messages)} messages)")

    async def fetch(self, session_id: UUID) -> InterviewSession | None:
        await self.init_schema()
        async with self._sessionmaker() as db:
            model = await InterviewSessionRepository(db).get_with_messages(session_id)
            return InterviewSessionRepository.to_session(model) if model else None

    async def list_recent(self, limit: int = 10) -> list[InterviewSession]:
        await self.init_schema()
        async with self._sessionmaker() as db:
            models = await InterviewSessionRepository(db).get_recent(limit)
            return [InterviewSessionRepository.to_session(m) for m in models]

    async def close(self) -> None:
        await self._engine.dispose()
