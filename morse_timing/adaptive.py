"""
AdaptiveSpeed
-------------
Follows the sender's speed by re-estimating the dit and Farnsworth dit
lengths from the durations a MorseDecoder has just classified.

Usage:
    dec = MorseDecoder(wpm=10, on_message=cb_msg, on_speed_change=cb_speed)
    tracker = AdaptiveSpeed(dec, buffer_size=30)
    ...feed dec.add_timing() as usual...
    tracker.locked = True       # freeze the current estimate

Every classified element gives a unit-length sample:

    '.'  dit        -> dit sample  = duration
    '-'  dah        -> dit sample  = duration / 3
    ''   dit space  -> dit sample  = duration
    ' '  char space -> fdit sample = duration / 3
    '/'  word space -> no sample (operators pause for arbitrarily long)

Each kind of sample lives in its own window of the last ``buffer_size``
samples. The estimate is a linearly weighted average over the window
(oldest weight 1, newest weight n) so recent timing dominates while a
single outlier cannot yank the thresholds. Estimates go straight back
into the decoder, so the thresholds that classify the next element have
already moved.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Optional

import numpy as np

from .decoder import Element, MorseDecoder

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 30


def weighted_average(samples) -> Optional[float]:
    """Linearly weighted mean, newest sample heaviest. None if empty."""
    if not samples:
        return None
    values = np.asarray(samples, dtype=np.float64)
    weights = np.arange(1, len(values) + 1, dtype=np.float64)
    return float(np.dot(values, weights) / weights.sum())


class AdaptiveSpeed:
    """Recalibrate a decoder's unit lengths from what it decodes."""

    def __init__(self, decoder: MorseDecoder, buffer_size: int = DEFAULT_BUFFER_SIZE,
                 locked: bool = False):
        self.decoder = decoder
        self.buffer_size = int(buffer_size)
        self.locked = locked
        self.dit_lengths:  Deque[float] = deque(maxlen=self.buffer_size)
        self.fdit_lengths: Deque[float] = deque(maxlen=self.buffer_size)
        decoder.add_element_hook(self._on_element)

    @property
    def dit_estimate(self) -> Optional[float]:
        return weighted_average(self.dit_lengths)

    @property
    def fdit_estimate(self) -> Optional[float]:
        return weighted_average(self.fdit_lengths)

    def reset(self) -> None:
        self.dit_lengths.clear()
        self.fdit_lengths.clear()

    def detach(self) -> None:
        """Stop following the decoder."""
        self.decoder.remove_element_hook(self._on_element)

    def _on_element(self, duration: float, element: Element) -> None:
        if element is Element.DIT or element is Element.DIT_SPACE:
            self.dit_lengths.append(duration)
        elif element is Element.DAH:
            self.dit_lengths.append(duration / 3)
        elif element is Element.CHAR_SPACE:
            self.fdit_lengths.append(duration / 3)

        if self.locked:
            return

        dit, fdit = self.dit_estimate, self.fdit_estimate
        logger.debug("recalibrate: dit %s ms, fdit %s ms", dit, fdit)
        self.decoder.set_unit_lengths(dit, fdit)
