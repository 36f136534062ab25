"""
Controller module: interview lifecycle and turn-taking.
"""

from mock_interviewer.controller.states import (
    InvalidTransitionError,
    Notice,
    TurnState,
    VoiceStatus,
    project_status,
)
from mock_interviewer.controller.turn_controller import TurnController, TurnControllerConfig

__all__ = [
    "InvalidTransitionError",
    "Notice",
    "TurnState",
    "VoiceStatus",
    "project_status",
    "TurnController",
    "TurnControllerConfig",
]
