import asyncio
import random
from typing import Any

import pytest

from mock_interviewer.controller.turn_controller import TurnController, TurnControllerConfig
from mock_interviewer.gateway.interview_gateway import InterviewGateway
from mock_interviewer.models.llm_client import LLMClientBase, LLMResponse, Message
from mock_interviewer.session.schemas import Difficulty, InterviewSetup, Personality
from mock_interviewer.voice.voice_io import RecognitionEvent, SpeechOptions, VoiceIO, VoiceIOConfig


class FakeRecognizer:
    """Replays pushed events; a pushed None ends the current listen."""

    def __init__(self) -> None:
        self.available = True
        self.error: Exception | None = None
        self.listen_calls = 0
        self.closed = 0
        self._events: asyncio.Queue[RecognitionEvent | None] = asyncio.Queue()

    def is_available(self) -> bool:
        return self.available

    def push(self, text: str, is_final: bool = True) -> None:
        self._events.put_nowait(RecognitionEvent(text=text, is_final=is_final))

    def end_stream(self) -> None:
        self._events.put_nowait(None)

    async def listen(self):
        self.listen_calls += 1
        try:
            if self.error is not None:
                raise self.error
            while True:
                event = await self._events.get()
                if event is None:
                    return
                yield event
        finally:
            self.closed += 1


class FakeSynthesizer:
    """Records what it is asked to say; blocks on `gate` when one is set."""

    def __init__(self) -> None:
        self.available = True
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.spoken: list[str] = []
        self.options: list[SpeechOptions] = []
        self.cancelled = 0

    def is_available(self) -> bool:
        return self.available

    async def speak(self, text: str, options: SpeechOptions) -> None:
        self.spoken.append(text)
        self.options.append(options)
        if self.error is not None:
            raise self.error
        if self.gate is not None:
            try:
                await self.gate.wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise


class StubLLMClient(LLMClientBase):
    def __init__(
        self,
        replies: list[str] | None = None,
        json_reply: dict[str, Any] | None = None,
        configured: bool = True,
    ) -> None:
        self.replies = list(replies or [])
        self.json_reply = json_reply or {}
        self.configured = configured
        self.gate: asyncio.Event | None = None
        self.calls: list[list[Message]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def chat(self, messages, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append(list(messages))
        if self.gate is not None:
            await self.gate.wait()
        content = self.replies.pop(0) if self.replies else "Tell me more about that."
        return LLMResponse(content=content, model="stub")

    async def chat_with_json(self, messages, schema=None, temperature=0.2, **kwargs):
        self.calls.append(list(messages))
        return dict(self.json_reply)


@pytest.fixture
def settle():
    async def _settle(rounds: int = 50) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def setup() -> InterviewSetup:
    return InterviewSetup(industry="tech", difficulty=Difficulty.EASY, personality=Personality.FRIENDLY)


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def voice(recognizer, synthesizer) -> VoiceIO:
    return VoiceIO(recognizer, synthesizer, VoiceIOConfig(inactivity_timeout_s=0.3))


@pytest.fixture
def llm() -> StubLLMClient:
    return StubLLMClient()


@pytest.fixture
def gateway(llm) -> InterviewGateway:
    return InterviewGateway(llm, timeout=5.0, rng=random.Random(7))


@pytest.fixture
def make_controller(voice, gateway):
    def _make(voice_enabled: bool = False, **kwargs: Any) -> TurnController:
        config = TurnControllerConfig(
            voice_enabled=voice_enabled,
            max_silent_captures=kwargs.pop("max_silent_captures", 3),
            feedback_timeout_s=kwargs.pop("feedback_timeout_s", 5.0),
        )
        return TurnController(voice=voice, gateway=gateway, config=config, **kwargs)

    return _make
