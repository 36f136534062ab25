"""
Gateway module: persona prompts, scripted fallbacks and the remote call.
"""

from mock_interviewer.gateway.fallbacks import FALLBACK_RESPONSES
from mock_interviewer.gateway.interview_gateway import InterviewGateway
from mock_interviewer.gateway.prompts import OPENING_PROMPT, build_system_prompt

__all__ = [
    "InterviewGateway",
    "FALLBACK_RESPONSES",
    "OPENING_PROMPT",
    "build_system_prompt",
]
