"""
morse_timing
============
Text <-> Morse <-> on/off timings, with a streaming decoder that adapts to
the sender's speed.

    from morse_timing import MorseDecoder, AdaptiveSpeed

    dec = MorseDecoder(wpm=15, on_message=lambda ev: print(ev.message, end=""))
    AdaptiveSpeed(dec)
    for t in timings:           # +ve ms tone, -ve ms silence
        dec.add_timing(t)
    dec.flush()
"""

from .adaptive import AdaptiveSpeed
from .codec import (MorseMessage, Translation, looks_like_morse, morse_to_text,
                    text_to_ditdah, text_to_morse, tidy_morse, tidy_text)
from .decoder import Element, MessageEvent, MorseDecoder, SpeedEvent
from .errors import AudioFileError, MorseError, TranslationError
from .timings import morse_to_timings, text_to_timings, total_duration

__version__ = "0.1.0"

__all__ = [
    "AdaptiveSpeed",
    "AudioFileError",
    "Element",
    "MessageEvent",
    "MorseDecoder",
    "MorseError",
    "MorseMessage",
    "SpeedEvent",
    "Translation",
    "TranslationError",
    "looks_like_morse",
    "morse_to_text",
    "morse_to_timings",
    "text_to_ditdah",
    "text_to_morse",
    "text_to_timings",
    "tidy_morse",
    "tidy_text",
    "total_duration",
]
