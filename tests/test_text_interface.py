import re
from datetime import timedelta

import pytest

from conftest import StubLLMClient
from mock_interviewer.controller.turn_controller import TurnController
from mock_interviewer.gateway.interview_gateway import InterviewGateway
from mock_interviewer.io.text_interface import TextInterface, _format_duration
from mock_interviewer.session.schemas import Sender


def _scripted(lines):
    queue = list(lines)

    def read(prompt: str) -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    return read


@pytest.mark.asyncio
async def test_text_session_runs_to_feedback(make_controller, llm, setup, capsys) -> None:
    llm.replies = ["Welcome! Tell me about yourself.", "Thanks, that is all."]
    controller = make_controller()
    interface = TextInterface(controller, setup, input_func=_scripted(["", "/help", "I am a backend engineer.", "/end"]))

    session = await interface.run()

    out = capsys.readouterr().out
    assert "Interviewer: Welcome! Tell me about yourself." in out
    assert "You: I am a backend engineer." in out
    assert "Overall rating: 4/5" in out
    assert "Commands:" in out
    assert "Started:" in out
    assert "Ended:" in out
    assert re.search(r"Duration: \d+m \d{2}s", out)
    assert session.is_complete
    assert [m.sender for m in session.messages] == [Sender.AI, Sender.USER, Sender.AI]


@pytest.mark.asyncio
async def test_eof_ends_the_interview(make_controller, setup, capsys) -> None:
    controller = make_controller()

    session = await TextInterface(controller, setup, input_func=_scripted([])).run()

    assert session.is_complete
    assert "Ending interview..." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_demo_mode_banner(voice, setup, capsys) -> None:
    controller = TurnController(voice=voice, gateway=InterviewGateway(StubLLMClient(configured=False)))

    await TextInterface(controller, setup, input_func=_scripted(["quit"])).run()

    assert "Demo mode" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_illegal_command_is_reported(make_controller, recognizer, setup, capsys) -> None:
    recognizer.available = False
    controller = make_controller()

    await TextInterface(controller, setup, input_func=_scripted(["/listen", "exit"])).run()

    assert "! Speech recognition is not supported on this platform" in capsys.readouterr().out


def test_duration_formatting() -> None:
    assert _format_duration(timedelta(minutes=12, seconds=5)) == "12m 05s"
    assert _format_duration(timedelta(seconds=59.9)) == "0m 59s"
    assert _format_duration(timedelta(seconds=-3)) == "0m 00s"
