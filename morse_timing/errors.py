"""Exceptions raised by morse_timing collaborators.

The streaming decoder itself never raises for bad data; these cover the
text codec and the audio front end.
"""

from __future__ import annotations


class MorseError(Exception):
    """Base class for all morse_timing errors."""


class TranslationError(MorseError):
    """Text or morse contained tokens with no translation.

    ``translation`` holds the best-effort result with the bad tokens
    marked by ``#``.
    """

    def __init__(self, message: str, translation=None):
        super().__init__(message)
        self.translation = translation


class AudioFileError(MorseError):
    """An audio file could not be read or decoded."""
