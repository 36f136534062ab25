"""
Database module for persistence.

Provides SQLAlchemy models, the repository layer and the session stores
used to keep finished interviews.
"""

from mock_interviewer.db.models import Base, InterviewSessionModel, MessageModel
from mock_interviewer.db.repository import InterviewSessionRepository
from mock_interviewer.db.store import InMemorySessionStore, SessionStoreBase, SqlSessionStore

__all__ = [
    "Base",
    "InterviewSessionModel",
    "MessageModel",
    "InterviewSessionRepository",
    "InMemorySessionStore",
    "SessionStoreBase",
    "SqlSessionStore",
]
