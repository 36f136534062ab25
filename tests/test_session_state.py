from datetime import datetime, timedelta, timezone

import pytest

from mock_interviewer.feedback.scorer import neutral_feedback
from mock_interviewer.session.interview_state import InterviewState
from mock_interviewer.session.schemas import Sender


class StepClock:
    """Returns queued instants in order, repeating the last one."""

    def __init__(self, *instants: datetime) -> None:
        self._instants = list(instants)

    def __call__(self) -> datetime:
        if len(self._instants) > 1:
            return self._instants.pop(0)
        return self._instants[0]


T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_transcript_is_append_only(setup) -> None:
    state = InterviewState(setup)
    first = state.add_message(Sender.AI, "Welcome.")
    state.add_message(Sender.USER, "Thanks.")

    messages = state.messages
    assert [m.sender for m in messages] == [Sender.AI, Sender.USER]
    assert messages[0] is first
    assert state.snapshot().messages == messages


def test_timestamps_are_clamped_to_previous_message(setup) -> None:
    clock = StepClock(T0, T0 + timedelta(seconds=5), T0 + timedelta(seconds=2))
    state = InterviewState(setup, clock=clock)

    state.add_message(Sender.AI, "Welcome.")
    late = state.add_message(Sender.USER, "Skewed clock")

    assert late.timestamp == T0 + timedelta(seconds=5)


def test_complete_only_once(setup) -> None:
    state = InterviewState(setup, clock=StepClock(T0, T0 - timedelta(minutes=1)))
    final = state.complete(neutral_feedback())

    assert final.is_complete
    assert final.end_time == final.start_time
    assert final.feedback == neutral_feedback()

    with pytest.raises(RuntimeError):
        state.complete(neutral_feedback())
    with pytest.raises(RuntimeError):
        state.add_message(Sender.USER, "Too late")


def test_conversation_history_maps_roles(setup) -> None:
    state = InterviewState(setup)
    state.add_message(Sender.AI, "Tell me about yourself.")
    state.add_message(Sender.USER, "I write software.")

    history = state.conversation_history()
    assert [(m.role, m.content) for m in history] == [
        ("assistant", "Tell me about yourself."),
        ("user", "I write software."),
    ]


def test_snapshot_is_detached_from_later_messages(setup) -> None:
    state = InterviewState(setup)
    before = state.snapshot()
    state.add_message(Sender.AI, "Hello")

    assert before.messages == ()
    assert not before.is_complete
    assert len(state.snapshot().messages) == 1
