import pytest

from mock_interviewer.models.llm_client import LLMClient, LLMResponse, Message


def _client_replying(content: str, finish_reason: str = "stop") -> LLMClient:
    client = LLMClient(api_key="test-key")

    async def fake_chat(messages: list[Message], temperature: float = 0.7, max_tokens=None, **kwargs):
        return LLMResponse(content=content, finish_reason=finish_reason, model="test")

    # Monkeypatch instance method
    client.chat = fake_chat  # type: ignore[assignment]
    return client


@pytest.mark.asyncio
async def test_chat_with_json_repairs_single_quotes_and_trailing_commas() -> None:
    client = _client_replying("{'overall_score': 80, 'strengths': ['clear',],}")

    data = await client.chat_with_json(messages=[Message(role="user", content="score this")])
    assert data == {"overall_score": 80, "strengths": ["clear"]}


@pytest.mark.asyncio
async def test_chat_with_json_repairs_unquoted_keys_and_fenced_json() -> None:
    client = _client_replying(
        """```json
        {communication: 70, confident: true, notes: null,}
        ```"""
    )

    data = await client.chat_with_json(messages=[Message(role="user", content="score this")])
    assert data == {"communication": 70, "confident": True, "notes": None}


@pytest.mark.asyncio
async def test_chat_with_json_extracts_object_from_prose() -> None:
    client = _client_replying('Here is the evaluation: {"overall_rating": 4} Hope that helps!')

    data = await client.chat_with_json(messages=[Message(role="user", content="score this")])
    assert data == {"overall_rating": 4}


@pytest.mark.asyncio
async def test_chat_with_json_wraps_top_level_list() -> None:
    client = _client_replying('["Practice more", "Be concise"]')

    data = await client.chat_with_json(messages=[Message(role="user", content="list")])
    assert data == {"items": ["Practice more", "Be concise"]}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content", "finish_reason"),
    [
        ("", "error"),
        ("I would rather not answer in JSON.", "stop"),
    ],
)
async def test_chat_with_json_returns_empty_dict_when_unusable(content: str, finish_reason: str) -> None:
    client = _client_replying(content, finish_reason)

    data = await client.chat_with_json(messages=[Message(role="user", content="score this")])
    assert data == {}
