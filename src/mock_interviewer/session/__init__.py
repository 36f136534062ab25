"""
Session module: interview setup, transcript and feedback.
"""

from mock_interviewer.session.interview_state import InterviewState
from mock_interviewer.session.schemas import (
    DetailedFeedback,
    Difficulty,
    Feedback,
    InterviewSession,
    InterviewSetup,
    Message,
    Personality,
    Sender,
)

__all__ = [
    "InterviewState",
    "InterviewSetup",
    "InterviewSession",
    "Message",
    "Sender",
    "Difficulty",
    "Personality",
    "Feedback",
    "DetailedFeedback",
]
