"""
Feedback scorer.

Produces the terminal assessment of a finished interview. The turn
controller substitutes `neutral_feedback()` whenever scoring fails.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from mock_interviewer.models.llm_client import LLMClient, LLMClientBase, Message
from mock_interviewer.session.schemas import (
    DetailedFeedback,
    Feedback,
    InterviewSession,
    Sender,
)

logger = logging.getLogger(__name__)


class FeedbackError(RuntimeError):
    """Raised when no usable assessment could be produced."""


def neutral_feedback() -> Feedback:
    """The fixed assessment used when scoring is unavailable."""
    return Feedback(
        confidence_score=75,
        strengths=["Good communication"],
        improvements=["Practice more"],
        overall_rating=4,
        detailed_feedback=DetailedFeedback(
            communication=75,
            technical_knowledge=75,
            problem_solving=75,
            cultural_fit=75,
        ),
    )


class FeedbackScorerBase(ABC):
    """Abstract base class for feedback scorers."""

    @abstractmethod
    async def score(self, session: InterviewSession) -> Feedback:
        """
        Assess a finished interview.

        Args:
            session: Session snapshot with the full transcript.

        Returns:
            Feedback for the candidate.

        Raises:
            FeedbackError: If no assessment could be produced.
        """
        ...


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(low, min(high, number))


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


class LLMFeedbackScorer(FeedbackScorerBase):
    """Asks the completion service for a JSON assessment of the transcript."""

    FEEDBACK_PROMPT = """You are an experienced interview coach reviewing a mock job interview.

Interview context:
- Industry: {industry}
- Role: {role}
- Difficulty: {difficulty}
- Interviewer personality: {personality}

Transcript:
{transcript}

Assess the candidate's performance. Return a JSON object:
{{
    "confidence_score": <0-100>,
    "strengths": ["<strength1>", "<strength2>", ...],
    "improvements": ["<improvement1>", "<improvement2>", ...],
    "overall_rating": <1-5>,
    "detailed_feedback": {{
        "communication": <0-100>,
        "technical_knowledge": <0-100>,
        "problem_solving": <0-100>,
        "cultural_fit": <0-100>
    }}
}}"""

    def __init__(self, llm_client: LLMClientBase | None = None) -> None:
        """
        Initialize the scorer.

        Args:
            llm_client: LLM client for evaluation. Creates default if None.
        """
        self._llm_client = llm_client or LLMClient()

    @staticmethod
    def _format_transcript(session: InterviewSession) -> str:
        if not session.messages:
            return "(No messages)"
        labels = {Sender.USER: "Candidate", Sender.AI: "Interviewer"}
        return "\n".join(f"{labels[m.sender]}: {m.content}" for m in session.messages)

    def _to_feedback(self, data: dict[str, Any]) -> Feedback:
        detailed = data.get("detailed_feedback")
        detailed = detailed if isinstance(detailed, dict) else {}
        return Feedback(
            confidence_score=_clamp(data.get("confidence_score"), 0, 100, 75),
            strengths=_string_list(data.get("strengths")),
            improvements=_string_list(data.get("improvements")),
            overall_rating=_clamp(data.get("overall_rating"), 1, 5, 4),
            detailed_feedback=DetailedFeedback(
                communication=_clamp(detailed.get("communication"), 0, 100, 75),
                technical_knowledge=_clamp(detailed.get("technical_knowledge"), 0, 100, 75),
                problem_solving=_clamp(detailed.get("problem_solving"), 0, 100, 75),
                cultural_fit=_clamp(detailed.get("cultural_fit"), 0, 100, 75),
            ),
        )

    async def score(self, session: InterviewSession) -> Feedback:
        if not self._llm_client.is_configured:
            raise FeedbackError("Completion service not configured")

        setup = session.setup
        prompt = self.FEEDBACK_PROMPT.format(
            industry=setup.industry,
            role=setup.role or "Not specified",
            difficulty=setup.difficulty.value,
            personality=setup.personality.value,
            transcript=self._format_transcript(session),
        )

        data = await self._llm_client.chat_with_json(messages=[Message(role="user", content=prompt)])
        if not data:
            raise FeedbackError("Completion service returned no assessment")

        feedback = self._to_feedback(data)
        logger.info(
            f"Scored session {session.session_id}: rating={feedback.overall_rating} "
            f"confidence={feedback.confidence_score}"
        )
        return feedback
