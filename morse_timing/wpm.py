"""
Speed maths
===========
Conversions between words-per-minute and element lengths in milliseconds.

Speeds are standardised on the word "PARIS " which is 50 dit-units long:
31 units of characters and 19 units of spacing (four 3-unit character
spaces and one 7-unit word space).

Farnsworth timing keeps the characters at ``wpm`` and stretches only the
spacing so that "PARIS " takes as long as it would at ``fwpm``.
"""

from __future__ import annotations

import math
from typing import Optional

DITS_PER_WORD   = 50      # dits in "PARIS "
SPACES_IN_PARIS = 19      # 4x 3-dit character spaces + 1x 7-dit word space
MS_IN_MINUTE    = 60000
MAX_WPM         = MS_IN_MINUTE / DITS_PER_WORD   # a 1 ms dit


def as_number(value, default: float) -> float:
    """Coerce to float, substituting default for anything non-numeric, NaN or infinite."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return float(default)
    if not math.isfinite(value):
        return float(default)
    return value


def _round(x: float) -> int:
    # half-up, so 2.5 -> 3 rather than Python's round-half-even
    return int(math.floor(x + 0.5))


def _dit_length(wpm: float) -> float:
    return (MS_IN_MINUTE / DITS_PER_WORD) / wpm


def _fdit_length(wpm: float, fwpm: float) -> float:
    return _dit_length(wpm) * ratio(wpm, fwpm)


def dit_length(wpm: float) -> int:
    """Length of a dit in ms."""
    return _round(_dit_length(wpm))


def dah_length(wpm: float) -> int:
    return _round(3 * _dit_length(wpm))


def dit_space(wpm: float) -> int:
    """Space between elements of a character; never slowed by Farnsworth."""
    return dit_length(wpm)


def char_space(wpm: float, fwpm: Optional[float] = None) -> int:
    if fwpm is None:
        fwpm = wpm
    return _round(3 * _fdit_length(wpm, fwpm))


def word_space(wpm: float, fwpm: Optional[float] = None) -> int:
    if fwpm is None:
        fwpm = wpm
    return _round(7 * _fdit_length(wpm, fwpm))


def fdit_length(wpm: float, fwpm: float) -> int:
    """Farnsworth dit length in ms, used only for character and word spaces."""
    return _round(_fdit_length(wpm, fwpm))


def ratio(wpm: float, fwpm: float) -> float:
    """
    Ratio of the Farnsworth dit to the normal dit.

    The 31 character units of "PARIS " take 31 * 60 / (50 * wpm) seconds and
    the whole word should take 60 / fwpm seconds, so the 19 spacing units
    share what is left: (50.wpm - 31.fwpm) / (19.fwpm) normal units each.
    """
    return (DITS_PER_WORD * wpm - (DITS_PER_WORD - SPACES_IN_PARIS) * fwpm) / (SPACES_IN_PARIS * fwpm)


def wpm(dit_len: float) -> float:
    """Speed in wpm for a dit length in ms (not rounded)."""
    return (MS_IN_MINUTE / DITS_PER_WORD) / dit_len


def fwpm(wpm: float, r: float) -> float:
    """Farnsworth speed for a speed and Farnsworth ratio (inverse of ratio())."""
    return DITS_PER_WORD * wpm / (SPACES_IN_PARIS * r + (DITS_PER_WORD - SPACES_IN_PARIS))
