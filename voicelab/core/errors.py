"""
Error taxonomy for decode, editor and analysis failures.
All inherit from VoiceLabError so the HTTP layer can map them in one place.
"""


class VoiceLabError(Exception):
    """Base class for engine errors."""


class DecodeError(VoiceLabError):
    """Input bytes could not be decoded into PCM."""


class NoAudioLoadedError(VoiceLabError):
    """Editor operation attempted before any audio was loaded."""

    def __init__(self, message: str = "No audio loaded"):
        super().__init__(message)


class InvalidRangeError(VoiceLabError):
    """Trim bounds are empty, reversed or outside the buffer."""


class SilentAudioError(VoiceLabError):
    """Normalize requested on a buffer whose peak is zero."""
