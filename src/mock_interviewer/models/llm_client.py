"""
LLM client abstraction.

Provides a unified interface for talking to an OpenAI-compatible chat
completions endpoint (OpenRouter by default) over HTTP.
"""

import ast
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field

from mock_interviewer.config import get_settings

logger = logging.getLogger(__name__)

APP_TITLE = "Mock Interviewer"


class Message(BaseModel):
    """A message in a conversation."""

    role: str = Field(..., description="Role of the speaker (system, user, assistant)")
    content: str = Field(..., description="Message content")


class LLMResponse(BaseModel):
    """Response from an LLM."""

    content: str = Field(..., description="Generated text content")
    finish_reason: str = Field(default="stop", description="Reason for completion")
    usage: dict[str, int] = Field(
        default_factory=dict,
        description="Token usage information",
    )
    model: str = Field(default="", description="Model used for generation")
    raw_response: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw response from the API",
    )


class CompletionError(Exception):
    """Exception raised when the completion service cannot produce a reply."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LLMClientBase(ABC):
    """Abstract base class for LLM clients."""

    @property
    def is_configured(self) -> bool:
        """Whether the client has what it needs to reach its backend."""
        return True

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            messages: Conversation history.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional model-specific parameters.

        Returns:
            Generated response. Failures are reported with
            ``finish_reason="error"`` rather than raised.
        """
        ...


class LLMClient(LLMClientBase):
    """
    HTTP chat-completions client.

    Sends role-tagged messages to the configured endpoint and returns the
    first choice. A missing credential, transport error, non-success status
    or malformed payload all surface as an error response.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        model: str | None = None,
        max_retries: int = 0,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the completion client.

        Args:
            api_key: Bearer credential (defaults to settings).
            api_url: Chat completions endpoint (defaults to settings).
            model: Model identifier (defaults to settings).
            max_retries: Number of retries on failure (default 0).
            timeout: Timeout in seconds per request (defaults to settings).
            transport: Optional httpx transport, mainly for tests.
        """
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.completion_api_key
        self._api_url = api_url or settings.completion_api_url
        self._model = model or settings.completion_model
        self._max_retries = max_retries
        self._timeout = timeout if timeout is not None else settings.completion_timeout
        self._transport = transport

        if not self._api_key:
            logger.warning("Completion API key not found. Set COMPLETION_API_KEY to enable live replies.")
        logger.info(f"Initialized completion client with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def is_configured(self) -> bool:
        """True iff a credential is present."""
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "X-Title": APP_TITLE,
        }

    @staticmethod
    def _extract_content(data: Any) -> str:
        """
        Pull the first choice's text out of a completions payload.

        Raises:
            CompletionError: If the payload has no usable choice.
        """
        if not isinstance(data, dict):
            raise CompletionError("Malformed completion payload")

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise CompletionError("No choices in completion payload")

        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise CompletionError("Empty completion content")

        return content.strip()

    async def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        """
        POST a completions request with retry logic.

        Args:
            body: JSON request body.

        Returns:
            The decoded response payload.

        Raises:
            CompletionError: If the request fails after all retries.
        """
        if not self._api_key:
            raise CompletionError("Completion API key is not configured")

        last_error: CompletionError | None = None
        attempts = 0

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            while attempts <= self._max_retries:
                attempts += 1
                try:
                    logger.debug(f"POST {self._api_url} (attempt {attempts})")
                    response = await client.post(self._api_url, json=body, headers=self._headers())
                except httpx.TimeoutException:
                    logger.warning(f"Completion request timed out after {self._timeout}s (attempt {attempts})")
                    last_error = CompletionError(f"Completion request timed out after {self._timeout} seconds")
                    continue
                except httpx.HTTPError as e:
                    logger.warning(f"Completion transport error (attempt {attempts}): {e}")
                    last_error = CompletionError(str(e))
                    continue

                if response.status_code != 200:
                    logger.warning(f"Completion service returned {response.status_code} (attempt {attempts})")
                    last_error = CompletionError(
                        f"Completion API error: {response.status_code}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                    continue

                try:
                    return response.json()
                except ValueError as e:
                    raise CompletionError(f"Completion payload is not JSON: {e}") from e

        raise last_error or CompletionError("Completion request failed after all retries")

    async def chat(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            messages: Conversation history.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional request fields (e.g. top_p).

        Returns:
            Generated response.
        """
        body: dict[str, Any] = {
            "model": self._model,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
            "stream": False,
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        body.update(kwargs)

        try:
            data = await self._post(body)
            content = self._extract_content(data)
        except CompletionError as e:
            logger.error(f"Completion chat failed: {e}")
            return LLMResponse(
                content="",
                finish_reason="error",
                usage={},
                model=self._model,
                raw_response={"error": str(e)},
            )

        usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
        return LLMResponse(
            content=content,
            finish_reason=str(data["choices"][0].get("finish_reason") or "stop"),
            usage={k: v for k, v in usage.items() if isinstance(v, int)},
            model=str(data.get("model") or self._model),
            raw_response=data,
        )

    async def chat_with_json(
        self,
        messages: list[Message],
        schema: dict[str, Any] | None = None,
        temperature: float = 0.2,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Generate a chat completion with JSON structured output.

        Args:
            messages: Conversation history.
            schema: Optional JSON schema for expected output.
            temperature: Sampling temperature (lower for more deterministic).
            **kwargs: Additional parameters.

        Returns:
            Parsed JSON response, or empty dict on error.
        """
        if schema:
            instruction = Message(
                role="system",
                content=(
                    "You must respond with valid JSON only. No additional text or explanation. "
                    f"Your response must match this JSON schema: {json.dumps(schema)}"
                ),
            )
        else:
            instruction = Message(
                role="system",
                content="You must respond with valid JSON only. No additional text or explanation.",
            )

        response = await self.chat([instruction] + messages, temperature, **kwargs)

        if response.finish_reason == "error" or not response.content:
            logger.warning("JSON chat failed, returning empty dict")
            return {}

        content = response.content.strip()

        # Look for the outermost JSON object or array in the reply.
        start_idx = content.find("{")
        if start_idx == -1:
            start_idx = content.find("[")

        if start_idx != -1:
            depth = 0
            end_idx = start_idx
            open_bracket = content[start_idx]
            close_bracket = "}" if open_bracket == "{" else "]"

            for i, char in enumerate(content[start_idx:], start=start_idx):
                if char == open_bracket:
                    depth += 1
                elif char == close_bracket:
                    depth -= 1
                    if depth == 0:
                        end_idx = i + 1
                        break

            parsed = self._parse_json_loose(content[start_idx:end_idx])
            if isinstance(parsed, dict):
                return parsed
            if isinstance(parsed, list):
                return {"items": parsed}

        parsed = self._parse_json_loose(content)
        if isinstance(parsed, dict):
            return parsed
        if isinstance(parsed, list):
            return {"items": parsed}

        logger.warning("Failed to parse JSON from response")
        logger.debug(f"Response content: {response.content[:500]}")
        return {}

    def _fix_json_string(self, json_str: str) -> str:
        """
        Attempt to fix common JSON issues from LLM output.

        Args:
            json_str: Raw JSON string that may have issues.

        Returns:
            Cleaned JSON string.
        """
        if not json_str:
            return ""

        result = json_str.strip()

        # Strip common fenced blocks.
        result = re.sub(r"^```(?:json)?\s*", "", result, flags=re.IGNORECASE)
        result = re.sub(r"\s*```$", "", result)

        result = (
            result.replace("“", '"')
            .replace("”", '"')
            .replace("‘", "'")
            .replace("’", "'")
        )

        # Remove trailing commas before closing braces/brackets.
        result = re.sub(r",(\s*[}\]])", r"\1", result)

        result = re.sub(r"\bNone\b", "null", result)
        result = re.sub(r"\bTrue\b", "true", result)
        result = re.sub(r"\bFalse\b", "false", result)

        # Quote bare keys right after { or , so values are left alone.
        result = re.sub(
            r"([\{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)",
            r'\1"\2"\3',
            result,
        )

        if result.count("'") > 0 and result.count('"') == 0:
            result = result.replace("'", '"')

        return result

    def _coerce_to_json_types(self, obj: Any) -> Any:
        """Coerce a Python literal to JSON-safe types."""
        if obj is ...:
            return None
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        if isinstance(obj, dict):
            return {str(k): self._coerce_to_json_types(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple, set)):
            return [self._coerce_to_json_types(v) for v in obj]
        return str(obj)

    def _parse_json_loose(self, raw: str) -> dict[str, Any] | list[Any] | None:
        """Parse JSON with best-effort repair.

        Returns a dict/list on success, else None.
        """
        if not raw:
            return None

        cleaned = self._fix_json_string(raw)
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            pass

        # Python literal fallback (single quotes, trailing commas).
        try:
            obj = ast.literal_eval(raw.strip())
        except (ValueError, SyntaxError, TypeError):
            try:
                obj = ast.literal_eval(cleaned)
            except (ValueError, SyntaxError, TypeError):
                return None

        if not isinstance(obj, (dict, list, tuple, set)):
            return None

        return self._coerce_to_json_types(obj)
