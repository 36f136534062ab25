"""Voice I/O exception taxonomy.

Every error here is recoverable: the turn controller turns them into
notices and returns to waiting for the user.
"""


class VoiceIOError(Exception):
    """Base class for voice adapter errors."""


class CaptureError(VoiceIOError):
    """Speech capture failed."""


class CaptureUnsupported(CaptureError):
    """No speech capture capability on this platform."""


class CaptureBusy(CaptureError):
    """A capture is already outstanding."""


class CaptureCancelled(CaptureError):
    """The outstanding capture was cancelled."""


class NoSpeechDetected(CaptureError):
    """The capture window closed without a final transcript."""


class PlaybackError(VoiceIOError):
    """Speech synthesis or playback failed."""


class PlaybackUnsupported(PlaybackError):
    """No speech synthesis capability on this platform."""


class PlaybackCancelled(PlaybackError):
    """The current utterance was cancelled before it finished."""
