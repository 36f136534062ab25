"""
Turn controller.

Owns the interview session and drives the request / response / playback /
re-listen cycle. Every transition runs on the event loop; mutual exclusion
between listening, speaking and waiting on the interviewer comes from the
single `TurnState`, so no locks are needed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from mock_interviewer.controller.states import (
    InvalidTransitionError,
    Notice,
    TurnState,
    VoiceStatus,
    project_status,
)
from mock_interviewer.db.store import SessionStoreBase
from mock_interviewer.feedback.scorer import FeedbackScorerBase, neutral_feedback
from mock_interviewer.gateway.interview_gateway import InterviewGateway
from mock_interviewer.gateway.prompts import OPENING_PROMPT
from mock_interviewer.models.llm_client import Message as LLMMessage
from mock_interviewer.session.interview_state import InterviewState
from mock_interviewer.session.schemas import (
    Feedback,
    InterviewSession,
    InterviewSetup,
    Message,
    Sender,
)
from mock_interviewer.voice.errors import (
    CaptureBusy,
    CaptureCancelled,
    CaptureUnsupported,
    NoSpeechDetected,
    PlaybackCancelled,
    VoiceIOError,
)
from mock_interviewer.voice.voice_io import SpeechOptions, VoiceIO

logger = logging.getLogger(__name__)

StatusListener = Callable[[VoiceStatus], None]


@dataclass(frozen=True)
class TurnControllerConfig:
    voice_enabled: bool = False
    speech_options: SpeechOptions = field(default_factory=SpeechOptions)
    max_silent_captures: int = 3
    feedback_timeout_s: float = 45.0


class TurnController:
    """
    Coordinates one interview at a time.

    The controller appends user and interviewer messages, speaks replies
    when voice mode is on, and re-arms listening whenever it is waiting on
    the user with voice enabled. Voice failures never escape: they become
    notices and the controller returns to waiting for the user.
    """

    def __init__(
        self,
        *,
        voice: VoiceIO,
        gateway: InterviewGateway,
        scorer: FeedbackScorerBase | None = None,
        store: SessionStoreBase | None = None,
        config: TurnControllerConfig | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            voice: Voice I/O adapter.
            gateway: Remote interview gateway.
            scorer: Feedback scorer; neutral feedback is used if None.
            store: Where finished sessions are saved; nothing is saved if None.
            config: Controller configuration.
        """
        self._voice = voice
        self._gateway = gateway
        self._scorer = scorer
        self._store = store
        self._config = config or TurnControllerConfig()

        self._state = TurnState.IDLE
        self._voice_enabled = self._config.voice_enabled
        self._session: InterviewState | None = None
        self._notices: list[Notice] = []
        self._listeners: list[StatusListener] = []

        self._listen_task: asyncio.Task[None] | None = None
        self._speak_task: asyncio.Task[None] | None = None
        self._end_task: asyncio.Task[InterviewSession] | None = None
        self._auto_listen_paused = False
        self._silent_captures = 0

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def status(self) -> VoiceStatus:
        return project_status(self._state, self._voice_enabled)

    @property
    def is_listening(self) -> bool:
        return self.status.is_listening

    @property
    def is_speaking(self) -> bool:
        return self.status.is_speaking

    @property
    def is_ai_responding(self) -> bool:
        return self.status.is_ai_responding

    @property
    def is_voice_enabled(self) -> bool:
        return self._voice_enabled

    @property
    def session(self) -> InterviewSession | None:
        """Read-only snapshot of the current session, if any."""
        return self._session.snapshot() if self._session else None

    @property
    def gateway(self) -> InterviewGateway:
        return self._gateway

    @property
    def voice(self) -> VoiceIO:
        return self._voice

    @property
    def notices(self) -> tuple[Notice, ...]:
        return tuple(self._notices)

    def dismiss_notices(self) -> None:
        self._notices.clear()

    def add_listener(self, listener: StatusListener) -> None:
        """Register a callback that receives the status after every transition."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        status = self.status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Status listener failed")

    def _post_notice(self, level: str, message: str) -> None:
        if level == "error":
            logger.warning(message)
        else:
            logger.info(message)
        self._notices.append(Notice(level=level, message=message))
        self._notify()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _set_state(self, state: TurnState, *, evaluate: bool = True) -> None:
        if state != self._state:
            logger.debug(f"Turn state {self._state.value} -> {state.value}")
        self._state = state
        self._notify()
        if evaluate:
            self._evaluate_auto_listen()

    def _evaluate_auto_listen(self) -> None:
        """Start listening if waiting on the user with voice on and nothing outstanding."""
        if (
            self._state == TurnState.WAITING_FOR_USER
            and self._voice_enabled
            and not self._auto_listen_paused
            and self._listen_task is None
            and self._voice.capabilities().capture_supported
        ):
            self._begin_listening()

    def _begin_listening(self) -> None:
        self._listen_task = asyncio.get_running_loop().create_task(self._listen())
        self._set_state(TurnState.LISTENING, evaluate=False)

    async def _listen(self) -> None:
        task = asyncio.current_task()
        try:
            transcript = await self._voice.capture_utterance()
        except CaptureCancelled:
            return
        except NoSpeechDetected:
            if self._listen_task is not task:
                return
            self._listen_task = None
            self._silent_captures += 1
            if self._silent_captures >= self._config.max_silent_captures:
                self._auto_listen_paused = True
                self._post_notice("info", "No speech detected. Listening paused until you start it again.")
            self._set_state(TurnState.WAITING_FOR_USER)
            return
        except VoiceIOError as e:
            if self._listen_task is not task:
                return
            self._listen_task = None
            self._auto_listen_paused = True
            self._post_notice("error", str(e))
            self._set_state(TurnState.WAITING_FOR_USER)
            return

        if self._listen_task is not task:
            return
        self._listen_task = None
        self._silent_captures = 0
        self._set_state(TurnState.WAITING_FOR_USER, evaluate=False)
        await self._exchange(transcript)

    def _cancel_listening(self) -> None:
        task, self._listen_task = self._listen_task, None
        self._voice.cancel_capture()
        if task is not None and not task.done():
            task.cancel()

    def _cancel_playback(self) -> None:
        task, self._speak_task = self._speak_task, None
        self._voice.cancel_speaking()
        if task is not None and not task.done():
            task.cancel()

    def _cancel_voice(self) -> None:
        self._cancel_listening()
        self._cancel_playback()

    async def _exchange(self, content: str) -> Message:
        """Append the user's message, then fetch and deliver the interviewer's reply."""
        session = self._session
        if session is None:
            raise InvalidTransitionError("No interview in progress")

        user_message = session.add_message(Sender.USER, content)
        self._auto_listen_paused = False
        self._set_state(TurnState.AI_RESPONDING)

        reply = await self._gateway.request_next_utterance(
            session.conversation_history(),
            session.setup,
        )
        if self._session is not session or self._state != TurnState.AI_RESPONDING:
            logger.info("Interviewer reply arrived after the turn was abandoned; discarding")
            return user_message

        self._deliver(session.add_message(Sender.AI, reply))
        return user_message

    def _deliver(self, message: Message) -> None:
        """Speak the interviewer's message when voice is on, else hand the turn back."""
        if not self._voice_enabled or not self._voice.capabilities().synthesis_supported:
            self._set_state(TurnState.WAITING_FOR_USER)
            return

        self._speak_task = asyncio.get_running_loop().create_task(self._play(message))
        self._set_state(TurnState.SPEAKING, evaluate=False)

    async def _play(self, message: Message) -> None:
        task = asyncio.current_task()
        try:
            await self._voice.speak(message.content, self._config.speech_options)
        except PlaybackCancelled:
            logger.debug("[VOICE][TTS] playback interrupted")
        except VoiceIOError as e:
            if self._speak_task is task:
                self._post_notice("error", f"Failed to speak message: {e}")
        finally:
            if self._speak_task is task:
                self._speak_task = None
                if self._state == TurnState.SPEAKING:
                    self._set_state(TurnState.WAITING_FOR_USER)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def start(self, setup: InterviewSetup) -> InterviewSession:
        """
        Start a new interview and fetch the interviewer's opening.

        Args:
            setup: Interview setup.

        Returns:
            Snapshot of the new session.

        Raises:
            InvalidTransitionError: If an interview is already in progress.
        """
        if self._state not in (TurnState.IDLE, TurnState.ENDED):
            raise InvalidTransitionError(f"Cannot start an interview while {self._state.value}")

        self._cancel_voice()
        session = InterviewState(setup)
        self._session = session
        self._end_task = None
        self._auto_listen_paused = False
        self._silent_captures = 0
        logger.info(
            f"Starting interview {session.session_id}: industry={setup.industry} "
            f"difficulty={setup.difficulty.value} personality={setup.personality.value}"
        )

        self._set_state(TurnState.STARTING)
        self._set_state(TurnState.AI_RESPONDING)

        reply = await self._gateway.request_next_utterance(
            [LLMMessage(role="user", content=OPENING_PROMPT)],
            setup,
        )
        if self._session is not session or self._state != TurnState.AI_RESPONDING:
            logger.info("Opening arrived after the interview was abandoned; discarding")
            return session.snapshot()

        self._deliver(session.add_message(Sender.AI, reply))
        return session.snapshot()

    async def submit_user_text(self, content: str) -> Message | None:
        """
        Submit the user's answer and wait for the interviewer's reply.

        Blank input is ignored. An in-flight capture is cancelled first.

        Args:
            content: The user's answer.

        Returns:
            The appended user message, or None if the input was blank.

        Raises:
            InvalidTransitionError: If the controller is not waiting on the user.
        """
        text = (content or "").strip()
        if not text:
            return None

        if self._state == TurnState.LISTENING:
            self._cancel_listening()
            self._set_state(TurnState.WAITING_FOR_USER, evaluate=False)

        if self._state != TurnState.WAITING_FOR_USER:
            raise InvalidTransitionError(f"Cannot submit a message while {self._state.value}")

        self._silent_captures = 0
        return await self._exchange(text)

    def start_capture(self) -> None:
        """
        Start listening for the user's answer.

        Stops the interviewer's playback first if it is speaking.

        Raises:
            CaptureBusy: If already listening.
            CaptureUnsupported: If speech capture is not available.
            InvalidTransitionError: If the controller is not waiting on the user.
        """
        if self._state == TurnState.LISTENING:
            raise CaptureBusy("Already listening")
        if not self._voice.capabilities().capture_supported:
            raise CaptureUnsupported("Speech recognition is not supported on this platform")
        if self._state not in (TurnState.WAITING_FOR_USER, TurnState.SPEAKING):
            raise InvalidTransitionError(f"Cannot listen while {self._state.value}")

        if self._state == TurnState.SPEAKING:
            self._cancel_playback()
            self._set_state(TurnState.WAITING_FOR_USER, evaluate=False)

        self._auto_listen_paused = False
        self._silent_captures = 0
        self._begin_listening()

    def stop_capture(self) -> None:
        """Stop listening and hold off automatic listening until the next turn."""
        if self._state != TurnState.LISTENING and self._listen_task is None:
            return
        self._auto_listen_paused = True
        self._cancel_listening()
        if self._state == TurnState.LISTENING:
            self._set_state(TurnState.WAITING_FOR_USER)

    def stop_speaking(self) -> None:
        """Cut the interviewer's playback short."""
        if self._state != TurnState.SPEAKING and self._speak_task is None:
            return
        self._cancel_playback()
        if self._state == TurnState.SPEAKING:
            self._set_state(TurnState.WAITING_FOR_USER)

    def toggle_voice(self, enabled: bool) -> None:
        """
        Turn voice mode on or off.

        Turning it off cancels any capture or playback first; turning it on
        arms automatic listening.
        """
        if not enabled:
            interrupted = self._state in (TurnState.LISTENING, TurnState.SPEAKING)
            self._cancel_voice()
            self._voice_enabled = False
            logger.info("Voice mode disabled")
            if interrupted:
                self._set_state(TurnState.WAITING_FOR_USER)
            else:
                self._notify()
            return

        self._voice_enabled = True
        self._auto_listen_paused = False
        self._silent_captures = 0
        logger.info("Voice mode enabled")
        self._notify()
        self._evaluate_auto_listen()

    async def end(self) -> InterviewSession:
        """
        End the interview and produce its feedback.

        Repeated or concurrent calls share one result.

        Returns:
            The completed session with feedback.

        Raises:
            InvalidTransitionError: If there is no interview to end.
        """
        if self._end_task is None:
            session = self._session
            if session is None or self._state == TurnState.IDLE:
                raise InvalidTransitionError("No interview in progress")

            self._cancel_voice()
            self._set_state(TurnState.ENDED)
            self._end_task = asyncio.get_running_loop().create_task(self._finalize(session))

        return await asyncio.shield(self._end_task)

    async def _score(self, snapshot: InterviewSession) -> Feedback:
        if self._scorer is None:
            return neutral_feedback()
        try:
            return await asyncio.wait_for(
                self._scorer.score(snapshot),
                timeout=self._config.feedback_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Feedback scoring timed out after {self._config.feedback_timeout_s}s; using neutral feedback")
        except Exception as e:
            logger.warning(f"Feedback scoring failed; using neutral feedback: {e}")
        return neutral_feedback()

    async def _finalize(self, session: InterviewState) -> InterviewSession:
        feedback = await self._score(session.snapshot())
        final = session.complete(feedback)
        logger.info(
            f"Interview {final.session_id} ended: messages={len(final.messages)} "
            f"rating={feedback.overall_rating}"
        )

        if self._store is not None:
            try:
                await self._store.save(final)
            except Exception as e:
                logger.error(f"Failed to save interview {final.session_id}: {e}", exc_info=True)
                self._post_notice("error", f"Failed to save interview: {e}")

        return final

    def reset(self) -> None:
        """Drop the current session and return to idle."""
        self._cancel_voice()
        self._session = None
        self._end_task = None
        self._notices.clear()
        self._auto_listen_paused = False
        self._silent_captures = 0
        self._set_state(TurnState.IDLE)
