"""
Timing encoder: text or morse -> signed ms durations.

The inverse of the decoder: tone is positive, silence negative.

    >>> morse_to_timings(".- . / .", wpm=20)
    [60, -60, 180, -180, 60, -420, 60]
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from . import wpm as WPM
from .codec import text_to_morse, tidy_morse
from .errors import TranslationError


def morse_to_timings_general(morse: str, dit: float, dah: float, dit_space: float,
                             char_space: float, word_space: float) -> List[float]:
    """Convert canonical morse to durations using explicit element lengths."""
    morse = morse.replace(" / ", "/")                   # a space now only separates characters
    morse = re.sub(r"([.\-])(?=[.\-])", r"\1+", morse)  # '+' between adjacent elements
    times: List[float] = []
    for c in morse:
        if c == ".":
            times.append(dit)
        elif c == "-":
            times.append(dah)
        elif c == "+":
            times.append(-dit_space)
        elif c == " ":
            times.append(-char_space)
        elif c == "/":
            times.append(-word_space)
    return times


def morse_to_timings(morse: str, wpm: float = 20, fwpm: Optional[float] = None) -> List[int]:
    """Durations for morse sent at wpm, with Farnsworth spacing at fwpm."""
    if fwpm is None or fwpm > wpm:
        fwpm = wpm
    return morse_to_timings_general(
        tidy_morse(morse),
        WPM.dit_length(wpm),
        WPM.dah_length(wpm),
        WPM.dit_space(wpm),
        WPM.char_space(wpm, fwpm),
        WPM.word_space(wpm, fwpm),
    )


def text_to_timings(text: str, wpm: float = 20, fwpm: Optional[float] = None,
                    use_prosigns: bool = True) -> List[int]:
    """Durations for text; raises TranslationError if any of it has no morse."""
    translation = text_to_morse(text, use_prosigns)
    if translation.has_error:
        raise TranslationError(f"Cannot translate {translation.message!r}", translation)
    return morse_to_timings(translation.morse, wpm, fwpm)


def total_duration(timings: Sequence[float]) -> float:
    """Total length in ms of tone and silence together."""
    return sum(abs(t) for t in timings)
