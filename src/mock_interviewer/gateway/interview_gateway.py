"""
Remote interview gateway.

Turns the transcript plus interview setup into the next interviewer
utterance. The gateway never raises to its caller: when the completion
service cannot answer, it substitutes a scripted, persona-specific reply.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence

from mock_interviewer.config import get_settings
from mock_interviewer.gateway.fallbacks import FALLBACK_RESPONSES
from mock_interviewer.gateway.prompts import build_system_prompt
from mock_interviewer.models.llm_client import LLMClient, LLMClientBase, Message
from mock_interviewer.session.schemas import InterviewSetup, Personality

logger = logging.getLogger(__name__)


class InterviewGateway:
    """
    Requests interviewer replies from the completion service.

    There is no retry: any failure, including a stall past the bounded wait,
    resolves to a uniformly random fallback line for the session's persona.
    """

    def __init__(
        self,
        llm_client: LLMClientBase | None = None,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            llm_client: Completion client. Creates default if None.
            temperature: Sampling temperature (defaults to settings).
            max_tokens: Token cap per reply (defaults to settings).
            timeout: Bounded wait in seconds for one reply (defaults to settings).
            rng: Random source for fallback selection.
        """
        settings = get_settings()
        self._llm_client = llm_client or LLMClient()
        self._temperature = temperature if temperature is not None else settings.completion_temperature
        self._max_tokens = max_tokens if max_tokens is not None else settings.completion_max_tokens
        self._timeout = timeout if timeout is not None else settings.completion_timeout
        self._rng = rng or random.Random()

    def is_configured(self) -> bool:
        """True iff the completion service credential is present."""
        return self._llm_client.is_configured

    def fallback_utterance(self, personality: Personality) -> str:
        """Pick a scripted reply for the persona."""
        responses = FALLBACK_RESPONSES.get(personality) or FALLBACK_RESPONSES[Personality.FRIENDLY]
        return self._rng.choice(responses)

    async def request_next_utterance(
        self,
        history: Sequence[Message],
        setup: InterviewSetup,
    ) -> str:
        """
        Get the interviewer's next utterance.

        Args:
            history: Role-tagged conversation so far, oldest first.
            setup: Interview setup used to condition the persona.

        Returns:
            The reply text, real or scripted.
        """
        if not self.is_configured():
            logger.debug("Completion service not configured; using scripted reply")
            return self.fallback_utterance(setup.personality)

        messages = list(history)
        if not messages or messages[0].role != "system":
            messages.insert(0, Message(role="system", content=build_system_prompt(setup)))

        try:
            response = await asyncio.wait_for(
                self._llm_client.chat(
                    messages,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Completion service stalled past {self._timeout}s; using scripted reply")
            return self.fallback_utterance(setup.personality)
        except Exception as e:
            logger.warning(f"Completion request failed; using scripted reply: {e}")
            return self.fallback_utterance(setup.personality)

        content = (response.content or "").strip()
        if response.finish_reason == "error" or not content:
            logger.info("Completion service returned no usable reply; using scripted reply")
            return self.fallback_utterance(setup.personality)

        return content
