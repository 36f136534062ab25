"""
Text-based interview interface.

Provides a command-line interface for practising interviews via typed
answers, with optional spoken replies and microphone answers.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import timedelta

from mock_interviewer.controller.states import InvalidTransitionError, VoiceStatus
from mock_interviewer.controller.turn_controller import TurnController
from mock_interviewer.session.schemas import InterviewSession, InterviewSetup, Sender
from mock_interviewer.voice.errors import VoiceIOError

END_COMMANDS = ("quit", "exit", "end", "/end")

HELP_TEXT = """Commands:
  /voice on|off   speak replies and listen for answers
  /listen         answer by voice now
  /stop           stop listening
  /skip           stop the interviewer speaking
  /end, quit      finish and get feedback"""


def _format_duration(elapsed: timedelta) -> str:
    """Render elapsed time as `Xm Ys`."""
    minutes, seconds = divmod(max(0, int(elapsed.total_seconds())), 60)
    return f"{minutes}m {seconds:02d}s"


class InterviewInterface(ABC):
    """Abstract base class for interview interfaces."""

    @abstractmethod
    async def run(self) -> InterviewSession | None:
        """Run the interview interface."""
        ...

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a message to the user.

        Args:
            message: Message to display.
        """
        ...

    @abstractmethod
    async def receive_input(self) -> str:
        """
        Receive input from the user.

        Returns:
            User's input string.
        """
        ...


class TextInterface(InterviewInterface):
    """
    Command-line interface for mock interviews.

    Prints transcript messages and notices as the controller reports them,
    and maps slash commands onto controller actions.
    """

    def __init__(
        self,
        controller: TurnController,
        setup: InterviewSetup,
        input_func: Callable[[str], str] = input,
    ) -> None:
        """
        Initialize the text interface.

        Args:
            controller: Turn controller driving the interview.
            setup: Interview setup to start with.
            input_func: Blocking line reader (the builtin `input` by default).
        """
        self._controller = controller
        self._setup = setup
        self._input_func = input_func
        self._shown_messages = 0
        self._was_listening = False

    async def run(self) -> InterviewSession | None:
        """Run the interactive interview session."""
        print("\n" + "=" * 60)
        print("Mock Interview Practice")
        print("=" * 60)
        if not self._controller.gateway.is_configured():
            print("\nDemo mode: no completion API key set, the interviewer uses scripted replies.")
        print(f"\n{HELP_TEXT}\n")

        self._controller.add_listener(self._on_status)
        await self._controller.start(self._setup)

        while True:
            line = await self.receive_input()
            command = line.strip()

            if command.lower() in END_COMMANDS:
                print("\nEnding interview...")
                session = await self._controller.end()
                await self._display_feedback(session)
                return session

            try:
                if self._handle_command(command):
                    continue
                if not command:
                    continue
                if self._controller.is_speaking:
                    self._controller.stop_speaking()
                await self._controller.submit_user_text(command)
            except (VoiceIOError, InvalidTransitionError) as e:
                await self.send_message(f"! {e}")

    def _handle_command(self, command: str) -> bool:
        """Apply a slash command. Returns True if the input was a command."""
        lowered = command.lower()
        if not lowered.startswith("/"):
            return False

        if lowered == "/voice on":
            self._controller.toggle_voice(True)
            if not self._controller.voice.capabilities().synthesis_supported:
                print("(speech synthesis unavailable; replies stay text-only)")
        elif lowered == "/voice off":
            self._controller.toggle_voice(False)
        elif lowered == "/listen":
            self._controller.start_capture()
        elif lowered == "/stop":
            self._controller.stop_capture()
        elif lowered == "/skip":
            self._controller.stop_speaking()
        else:
            print(HELP_TEXT)
        return True

    def _on_status(self, status: VoiceStatus) -> None:
        session = self._controller.session
        if session is not None:
            for message in session.messages[self._shown_messages :]:
                speaker = "Interviewer" if message.sender == Sender.AI else "You"
                print(f"\n{speaker}: {message.content}\n")
            self._shown_messages = len(session.messages)

        for notice in self._controller.notices:
            print(f"[{notice.level}] {notice.message}")
        self._controller.dismiss_notices()

        if status.is_listening and not self._was_listening:
            print("(listening...)")
        self._was_listening = status.is_listening

    async def send_message(self, message: str) -> None:
        """
        Display a message to the terminal.

        Args:
            message: Message to display.
        """
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        """
        Get input from the terminal without blocking the event loop.

        Returns:
            User's input string.
        """
        try:
            return await asyncio.to_thread(self._input_func, "You: ")
        except EOFError:
            return "exit"

    async def _display_feedback(self, session: InterviewSession) -> None:
        """
        Display the interview feedback.

        Args:
            session: Completed session.
        """
        feedback = session.feedback
        print("\n" + "=" * 60)
        print("Interview Feedback")
        print("=" * 60)
        print(f"\nIndustry: {session.setup.industry}")
        if session.setup.role:
            print(f"Role: {session.setup.role}")
        print(f"Started: {session.start_time:%Y-%m-%d %H:%M:%S %Z}")
        if session.end_time is not None:
            print(f"Ended: {session.end_time:%Y-%m-%d %H:%M:%S %Z}")
            print(f"Duration: {_format_duration(session.end_time - session.start_time)}")
        print(f"Messages: {len(session.messages)}")

        if feedback is None:
            print("\nNo feedback available.")
            print("\n" + "=" * 60)
            return

        print(f"\nOverall rating: {feedback.overall_rating}/5")
        print(f"Confidence: {feedback.confidence_score}/100")

        detail = feedback.detailed_feedback
        print("\nBreakdown:")
        print(f"  - Communication: {detail.communication}")
        print(f"  - Technical knowledge: {detail.technical_knowledge}")
        print(f"  - Problem solving: {detail.problem_solving}")
        print(f"  - Cultural fit: {detail.cultural_fit}")

        if feedback.strengths:
            print("\nStrengths:")
            for item in feedback.strengths:
                print(f"  - {item}")

        if feedback.improvements:
            print("\nTo improve:")
            for item in feedback.improvements:
                print(f"  - {item}")

        print("\n" + "=" * 60)
