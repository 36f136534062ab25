"""
Feedback module: end-of-interview assessment.
"""

from mock_interviewer.feedback.scorer import (
    FeedbackError,
    FeedbackScorerBase,
    LLMFeedbackScorer,
    neutral_feedback,
)

__all__ = [
    "FeedbackError",
    "FeedbackScorerBase",
    "LLMFeedbackScorer",
    "neutral_feedback",
]
