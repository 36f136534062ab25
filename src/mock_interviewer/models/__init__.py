"""
Models module for LLM client abstraction.

Provides a unified interface for the remote chat completions service.
"""

from mock_interviewer.models.llm_client import (
    CompletionError,
    LLMClient,
    LLMClientBase,
    LLMResponse,
    Message,
)

__all__ = [
    "LLMClient",
    "LLMClientBase",
    "LLMResponse",
    "Message",
    "CompletionError",
]
