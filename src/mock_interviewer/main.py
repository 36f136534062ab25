"""
Main entry point for the Mock Interviewer application.
"""

import argparse
import asyncio
import logging
import os
import sys

from mock_interviewer.config import Settings, get_settings
from mock_interviewer.controller.turn_controller import TurnController, TurnControllerConfig
from mock_interviewer.db.store import InMemorySessionStore, SessionStoreBase, SqlSessionStore
from mock_interviewer.feedback.scorer import LLMFeedbackScorer
from mock_interviewer.gateway.interview_gateway import InterviewGateway
from mock_interviewer.io.text_interface import TextInterface
from mock_interviewer.models.llm_client import LLMClient
from mock_interviewer.session.schemas import Difficulty, InterviewSetup, Personality
from mock_interviewer.voice.audio_io import AudioIO, AudioIOConfig
from mock_interviewer.voice.stt import MicrophoneRecognizer, MicrophoneRecognizerConfig, STTConfig, WhisperSTT
from mock_interviewer.voice.tts import PiperSynthesizer, PiperTTS, TTSConfig
from mock_interviewer.voice.voice_io import SpeechOptions, VoiceIO, VoiceIOConfig


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _flag(v: str | None) -> bool:
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def build_parser(settings: Settings | None = None) -> argparse.ArgumentParser:
    settings = settings or get_settings()
    p = argparse.ArgumentParser(prog="mock-interviewer", description="Practise job interviews with an AI interviewer")

    p.add_argument(
        "--mode",
        choices=["text", "voice"],
        default="voice" if _flag(os.getenv("MOCK_INTERVIEWER_VOICE")) else "text",
        help="Start with voice off (text) or on (voice) (default: MOCK_INTERVIEWER_VOICE or text)",
    )

    # Interview setup
    p.add_argument("--industry", default="tech", help="Industry, e.g. tech, healthcare, finance")
    p.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=Difficulty.MEDIUM.value)
    p.add_argument("--personality", choices=[x.value for x in Personality], default=Personality.FRIENDLY.value)
    p.add_argument("--role", default=None, help="Role being interviewed for")
    p.add_argument("--company", default=None, help="Company the interviewer represents")
    p.add_argument("--no-save", action="store_true", help="Keep finished sessions in memory only")

    # STT
    p.add_argument(
        "--stt-model",
        default=os.getenv("MOCK_INTERVIEWER_STT_MODEL", settings.stt_model),
        help="faster-whisper model size (default: MOCK_INTERVIEWER_STT_MODEL or settings)",
    )
    p.add_argument(
        "--stt-device",
        default=os.getenv("MOCK_INTERVIEWER_STT_DEVICE", settings.stt_device),
        choices=["cpu", "cuda", "auto"],
        help="STT device (default: MOCK_INTERVIEWER_STT_DEVICE or settings)",
    )
    p.add_argument("--sample-rate", type=int, default=16000)

    # TTS
    p.add_argument(
        "--piper-bin",
        default=os.getenv("MOCK_INTERVIEWER_PIPER_BIN", settings.piper_bin),
        help="Path/name of Piper TTS binary (default: MOCK_INTERVIEWER_PIPER_BIN or settings)",
    )
    p.add_argument(
        "--piper-model",
        default=os.getenv("MOCK_INTERVIEWER_PIPER_MODEL", settings.piper_model),
        help="Path to Piper .onnx model (default: MOCK_INTERVIEWER_PIPER_MODEL or settings)",
    )
    p.add_argument(
        "--piper-timeout",
        type=float,
        default=float(os.getenv("MOCK_INTERVIEWER_PIPER_TIMEOUT_S") or settings.piper_timeout),
        help="Timeout (seconds) per Piper synthesis chunk (default: MOCK_INTERVIEWER_PIPER_TIMEOUT_S or settings)",
    )

    return p


def build_voice_io(args: argparse.Namespace, settings: Settings) -> VoiceIO:
    """Wire the local microphone and Piper backends; devices are probed on first use."""
    audio = AudioIO(AudioIOConfig(sample_rate=args.sample_rate))
    stt = WhisperSTT(STTConfig(model_size=args.stt_model, device=args.stt_device, language=settings.stt_language))
    recognizer = MicrophoneRecognizer(
        audio,
        stt,
        MicrophoneRecognizerConfig(
            speech_rms_threshold=settings.capture_speech_rms_threshold,
            end_silence_ms=settings.capture_end_silence_ms,
        ),
    )
    tts = PiperTTS(TTSConfig(piper_bin=args.piper_bin, model_path=args.piper_model, timeout_s=args.piper_timeout))
    return VoiceIO(
        recognizer=recognizer,
        synthesizer=PiperSynthesizer(tts, audio),
        config=VoiceIOConfig(inactivity_timeout_s=settings.capture_inactivity_timeout),
    )


async def run_interview(argv: list[str] | None = None) -> None:
    """
    Run an interactive interview session.

    This is the main async entry point that initializes all components
    and runs the interview loop.
    """
    settings = get_settings()
    logger = logging.getLogger(__name__)
    args = build_parser(settings).parse_args(argv)

    logger.info("Initializing Mock Interviewer...")
    logger.debug(f"Using completion model: {settings.completion_model}")

    llm_client = LLMClient()
    store: SessionStoreBase = InMemorySessionStore() if args.no_save else SqlSessionStore(settings.database_url)

    controller = TurnController(
        voice=build_voice_io(args, settings),
        gateway=InterviewGateway(llm_client),
        scorer=LLMFeedbackScorer(llm_client),
        store=store,
        config=TurnControllerConfig(
            voice_enabled=args.mode == "voice",
            speech_options=SpeechOptions(
                rate=settings.speech_rate,
                pitch=settings.speech_pitch,
                volume=settings.speech_volume,
            ),
            max_silent_captures=settings.max_silent_captures,
            feedback_timeout_s=settings.feedback_timeout,
        ),
    )

    setup = InterviewSetup(
        industry=args.industry,
        difficulty=Difficulty(args.difficulty),
        personality=Personality(args.personality),
        role=args.role,
        company=args.company,
    )

    logger.info("Starting interview session...")
    try:
        await TextInterface(controller, setup).run()
    finally:
        if isinstance(store, SqlSessionStore):
            await store.close()


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        asyncio.run(run_interview(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nInterview session terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
