"""
MorseDecoder
============
Streaming decoder from signed on/off durations to morse and text.

Interface
---------
    dec = MorseDecoder(
        wpm=20,                 # character speed estimate
        fwpm=None,              # Farnsworth speed, defaults to wpm
        on_message=print,       # called with a MessageEvent on every flush
        on_speed_change=None,   # called with a SpeedEvent on speed changes
    )

    # durations in ms: +ve = tone present, -ve = silence
    for t in timings:
        dec.add_timing(t)
    dec.flush()                 # push through whatever is still buffered

Classification
--------------
Each buffered duration is classified by its sign and size against two
thresholds derived from the unit lengths:

    dit/dah threshold   = (1 + 3) / 2 dits
    dah/space threshold = (3 + 7) / 2 Farnsworth dits

    +ve  <  dit/dah                    '.'   dit
    +ve  >= dit/dah                    '-'   dah
    -ve  <  dit/dah                    ''    dit space (between elements)
    -ve  <  dah/space                  ' '   character space
    -ve  >= dah/space                  '/'   word space

Buffering
---------
Durations collect in an unused-time buffer that always alternates sign:
same-sign durations are summed and a short opposite-sign glitch (at most
``noise_threshold`` ms) is absorbed into the previous duration. A silence
of a character space or more triggers a flush. A trailing silence that is
not yet a word space is held back on flush since more silence may follow.

Hooks registered with add_element_hook() see every (duration, Element)
pair as it is classified; AdaptiveSpeed uses this to track the sender.

The decoder is single threaded and never blocks; a caller with several
producers must serialise its calls.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from . import wpm as WPM
from .codec import morse_to_text

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Elements and events
# ---------------------------------------------------------------------------

class Element(Enum):
    DIT        = "."
    DAH        = "-"
    DIT_SPACE  = ""
    CHAR_SPACE = " "
    WORD_SPACE = "/"


@dataclass
class MessageEvent:
    timings: List[float] = field(default_factory=list)   # durations consumed by the flush
    morse: str = ""
    message: str = ""
    has_error: bool = False

    def __str__(self):
        return self.message


@dataclass
class SpeedEvent:
    wpm: float
    fwpm: float

    def __str__(self):
        return f"[{self.wpm:.1f}/{self.fwpm:.1f} WPM]"


ElementHook = Callable[[float, Element], None]


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_WPM             = 20
DEFAULT_FWPM            = 20
DEFAULT_NOISE_THRESHOLD = 1      # ms; a duration this short is a glitch


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

class MorseDecoder:
    """
    Convert a stream of signed ms durations into morse and text.

    Parameters
    ----------
    wpm, fwpm           : initial speed estimate (fwpm defaults to wpm)
    on_message          : callable(MessageEvent) or None
    on_speed_change     : callable(SpeedEvent) or None
    noise_threshold     : ms; shorter opposite-sign durations are glitches
    use_prosigns        : decode with the prosign table
    default_wpm/fwpm    : substituted for non-numeric speed input
    farnsworth_boundary : trigger flushes on silences against a threshold
                          between a dit space and a Farnsworth character
                          space instead of the character-speed threshold
    """

    def __init__(
        self,
        wpm:                 float = DEFAULT_WPM,
        fwpm:                Optional[float] = None,
        on_message:          Optional[Callable[[MessageEvent], None]] = None,
        on_speed_change:     Optional[Callable[[SpeedEvent], None]] = None,
        noise_threshold:     float = DEFAULT_NOISE_THRESHOLD,
        use_prosigns:        bool  = False,
        default_wpm:         float = DEFAULT_WPM,
        default_fwpm:        float = DEFAULT_FWPM,
        farnsworth_boundary: bool  = False,
    ):
        self.on_message      = on_message
        self.on_speed_change = None
        self.noise_threshold = noise_threshold
        self.use_prosigns    = use_prosigns
        self.default_wpm     = default_wpm
        self.default_fwpm    = default_fwpm
        self.farnsworth_boundary = farnsworth_boundary

        self._wpm:     float = 0.0
        self._fwpm:    float = 0.0
        self._dit_len:  float = 0.0
        self._fdit_len: float = 0.0
        self._dit_dah_threshold:   float = 0.0
        self._dah_space_threshold: float = 0.0
        self._char_boundary:       float = 0.0

        self._unused: List[float] = []
        self._elements: List[Tuple[float, Element]] = []
        self._hooks: List[ElementHook] = []
        self.morse   = ""
        self.message = ""

        self.set_speed(wpm, wpm if fwpm is None else fwpm)
        # attached after the initial speed is set: construction fires no event
        self.on_speed_change = on_speed_change

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------

    @property
    def wpm(self) -> float:
        return self._wpm

    @property
    def fwpm(self) -> float:
        return self._fwpm

    @property
    def dit_len(self) -> float:
        return self._dit_len

    @property
    def fdit_len(self) -> float:
        return self._fdit_len

    @property
    def dit_dah_threshold(self) -> float:
        return self._dit_dah_threshold

    @property
    def dah_space_threshold(self) -> float:
        return self._dah_space_threshold

    def set_speed(self, wpm: Optional[float] = None,
                  fwpm: Optional[float] = None) -> Tuple[float, float]:
        """
        Set the character and/or Farnsworth speed in one step.

        ``None`` leaves a value as it is; non-numeric, NaN or infinite input
        takes the default. Both speeds lie in 1..MAX_WPM (a 1 ms dit) and
        fwpm never exceeds wpm: a lower wpm pulls fwpm down with it, a higher
        fwpm pushes wpm up. With both given, wpm is applied first so a
        conflicting pair resolves in favour of fwpm.
        Returns the resulting (wpm, fwpm).
        """
        new_wpm, new_fwpm = self._wpm, self._fwpm
        if wpm is not None:
            new_wpm = min(max(WPM.as_number(wpm, self.default_wpm), 1.0), WPM.MAX_WPM)
            if new_fwpm <= 0 or new_fwpm > new_wpm:
                new_fwpm = new_wpm
        if fwpm is not None:
            new_fwpm = min(max(WPM.as_number(fwpm, self.default_fwpm), 1.0), WPM.MAX_WPM)
            if new_wpm < new_fwpm:
                new_wpm = new_fwpm

        self._wpm, self._fwpm = new_wpm, new_fwpm
        self._dit_len  = WPM.dit_length(new_wpm)
        self._fdit_len = WPM.fdit_length(new_wpm, new_fwpm)
        self._update_thresholds()
        self._speed_changed()
        return self._wpm, self._fwpm

    def set_unit_lengths(self, dit_len: Optional[float] = None,
                         fdit_len: Optional[float] = None) -> Tuple[float, float]:
        """
        Set the dit and/or Farnsworth dit length in ms directly.

        ``None`` or an unusable value (non-numeric, NaN, infinite, not positive)
        leaves a length as it is, and lengths under 1 ms are taken as 1 ms.
        The Farnsworth dit is never shorter than the dit; if the two given
        lengths conflict the dit length wins. wpm and fwpm
        are derived back from the lengths. Returns the resulting (wpm, fwpm).
        """
        dit, fdit = self._dit_len, self._fdit_len
        fdit_in = WPM.as_number(fdit_len, math.nan) if fdit_len is not None else math.nan
        dit_in  = WPM.as_number(dit_len, math.nan) if dit_len is not None else math.nan

        if fdit_in > 0:
            fdit = max(fdit_in, 1.0)
            dit = min(dit, fdit)
        if dit_in > 0:
            dit = max(dit_in, 1.0)
            fdit = max(fdit, dit)

        self._dit_len, self._fdit_len = dit, fdit
        self._wpm  = WPM.wpm(dit)
        self._fwpm = WPM.fwpm(self._wpm, fdit / dit)
        self._update_thresholds()
        self._speed_changed()
        return self._wpm, self._fwpm

    def _update_thresholds(self):
        self._dit_dah_threshold   = (1 * self._dit_len + 3 * self._dit_len) / 2
        self._dah_space_threshold = (3 * self._fdit_len + 7 * self._fdit_len) / 2
        self._char_boundary       = (1 * self._dit_len + 3 * self._fdit_len) / 2

    def _speed_changed(self):
        logger.debug("speed %.2f/%.2f wpm, dit %.1f ms, fdit %.1f ms",
                     self._wpm, self._fwpm, self._dit_len, self._fdit_len)
        if self.on_speed_change is not None:
            self.on_speed_change(SpeedEvent(self._wpm, self._fwpm))

    # ------------------------------------------------------------------
    # Streaming input
    # ------------------------------------------------------------------

    def add_timing(self, duration: float) -> None:
        """
        Add a duration in ms: positive for tone, negative for silence.

        Zero is ignored. A duration with the same sign as the last buffered
        one is added to it; an opposite-sign duration no longer than
        noise_threshold is treated as a glitch and absorbed into the last.
        """
        if duration == 0:
            return
        if self._unused:
            last = self._unused[-1]
            if duration * last > 0:
                self._unused.pop()
                duration = last + duration
            elif abs(duration) <= self.noise_threshold:
                self._unused.pop()
                duration = last - duration   # the glitch continues the last state

        self._unused.append(duration)

        # at least a character space: flush what we have
        boundary = self._char_boundary if self.farnsworth_boundary else self._dit_dah_threshold
        if -duration >= boundary:
            self.flush()

    def flush(self) -> Optional[MessageEvent]:
        """
        Decode the buffered durations and emit a MessageEvent.

        Returns the event, or None if there was nothing to decode.
        """
        # already ended on a word space: further silence adds nothing
        if self.message.endswith(" ") and self._unused and self._unused[0] < 0:
            self._unused.pop(0)

        if not self._unused:
            return None

        times = self._unused
        last = times[-1]
        if last < 0 and -last < self._dah_space_threshold:
            times = times[:-1]

        # a trailing silence stays buffered in case there is more to come
        self._unused = [last] if last < 0 else []
        if not times:
            return None

        morse = self._timings_to_morse(times)
        translation = morse_to_text(morse, self.use_prosigns)
        self.morse += morse
        self.message += translation.message

        event = MessageEvent(
            timings   = list(times),
            morse     = morse,
            message   = translation.message,
            has_error = translation.has_error,
        )
        logger.debug("flush %d timings -> %r %r", len(times), morse, translation.message)
        if self.on_message is not None:
            self.on_message(event)
        return event

    def reset(self) -> None:
        """Forget buffered input and decoded output; keep the speed."""
        self._unused = []
        self._elements = []
        self.morse = ""
        self.message = ""

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, duration: float) -> Element:
        """Classify one signed duration against the current thresholds."""
        if duration > 0:
            return Element.DIT if duration < self._dit_dah_threshold else Element.DAH
        d = -duration
        if d < self._dit_dah_threshold:
            return Element.DIT_SPACE
        if d < self._dah_space_threshold:
            return Element.CHAR_SPACE
        return Element.WORD_SPACE

    def _timings_to_morse(self, times: List[float]) -> str:
        # thresholds are re-read per element: hooks may move them mid-flush
        out = []
        for d in times:
            element = self.classify(d)
            self._record(abs(d), element)
            out.append(element.value)
        return "".join(out)

    def _record(self, duration: float, element: Element):
        self._elements.append((duration, element))
        for hook in list(self._hooks):
            hook(duration, element)

    def add_element_hook(self, hook: ElementHook) -> None:
        """Call hook(duration, element) after every classified element."""
        self._hooks.append(hook)

    def remove_element_hook(self, hook: ElementHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def unused_times(self) -> List[float]:
        return list(self._unused)

    @property
    def elements(self) -> List[Tuple[float, Element]]:
        """Every (duration, element) classified so far; durations are positive."""
        return list(self._elements)

    def timings_of(self, element: Element) -> List[float]:
        return [d for d, e in self._elements if e is element]

    @property
    def dits(self) -> List[float]:
        return self.timings_of(Element.DIT)

    @property
    def dahs(self) -> List[float]:
        return self.timings_of(Element.DAH)

    @property
    def dit_spaces(self) -> List[float]:
        return self.timings_of(Element.DIT_SPACE)

    @property
    def dah_spaces(self) -> List[float]:
        return self.timings_of(Element.CHAR_SPACE)

    @property
    def spaces(self) -> List[float]:
        return self.timings_of(Element.WORD_SPACE)
