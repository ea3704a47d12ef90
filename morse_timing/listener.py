"""
MorseListener
=============
Audio front end: turns a stream of samples into signed on/off durations
and feeds them to a MorseDecoder.

Interface
---------
    listener = MorseListener(
        decoder,
        sample_rate=8000,
        fft_size=256,           # samples per analysis frame
        frequency_min=550,      # band to listen in (Hz)
        frequency_max=550,
        volume_threshold=200,   # 0..255 level that counts as "on"
    )
    listener.process(samples)   # any number of samples, any number of times
    listener.stop()             # push the last run and flush the decoder

    decode_wav("cq.wav", decoder, fft_size=64)

Per frame
---------
    Blackman window -> |FFT| -> dB -> 0..255 between volume_min and volume_max
    -> mean level over the filter band -> on if >= volume_threshold

Frames are counted per state. A change of state pushes the finished run to
the decoder as +/- ticks * time_step ms. A run longer than flush_time is
pushed early so a long pause still reaches the decoder. Silence before the
first tone is ignored.

With track_frequency the band follows the loudest bin of the spectrum
averaged over the last buffer_duration ms, unless lock_frequency is set.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from scipy.io import wavfile

from .decoder import MorseDecoder
from .wpm import as_number
from .errors import AudioFileError

logger = logging.getLogger(__name__)


DEFAULTS = {
    "fft_size":          256,
    "volume_min":        -60.0,   # dB
    "volume_max":        -30.0,   # dB
    "frequency_min":     550.0,   # Hz
    "frequency_max":     550.0,   # Hz
    "volume_threshold":  200,     # 0..255
}
DEFAULT_FLUSH_TIME      = 500     # ms
DEFAULT_BUFFER_DURATION = 500     # ms of spectra averaged for frequency tracking


@dataclass
class Frame:
    frequency_data: np.ndarray    # 0..255 level per bin, DC included
    frequency_step: float         # Hz per bin
    time_step: float              # ms per frame
    filter_bin_low: int
    filter_bin_high: int
    filter_region_volume: float
    is_on: bool


class MorseListener:

    def __init__(
        self,
        decoder:          MorseDecoder,
        sample_rate:      int,
        fft_size:         int   = DEFAULTS["fft_size"],
        volume_min:       float = DEFAULTS["volume_min"],
        volume_max:       float = DEFAULTS["volume_max"],
        frequency_min:    float = DEFAULTS["frequency_min"],
        frequency_max:    float = DEFAULTS["frequency_max"],
        volume_threshold: float = DEFAULTS["volume_threshold"],
        flush_time:       float = DEFAULT_FLUSH_TIME,
        track_frequency:  bool  = False,
        buffer_duration:  float = DEFAULT_BUFFER_DURATION,
        on_frame:         Optional[Callable[[Frame], None]] = None,
    ):
        self.decoder     = decoder
        self.sample_rate = int(sample_rate)
        self.fft_size    = int(fft_size)
        self.max_freq    = self.sample_rate / 2.0          # Nyquist
        self.freq_bins   = self.fft_size // 2
        self.time_step   = 1000.0 * self.fft_size / self.sample_rate   # ms per frame
        self.freq_step   = self.max_freq / self.freq_bins
        self.flush_time  = flush_time
        self.on_frame    = on_frame

        self._window  = np.blackman(self.fft_size)
        self._pending = np.zeros(0, dtype=np.float64)

        self._volume_min = -100.0
        self._volume_max = -30.0
        self.volume_min = volume_min
        self.volume_max = volume_max

        self._bin_low  = 1
        self._bin_high = 1
        self.frequency_filter_min = frequency_min
        self.frequency_filter_max = frequency_max
        self.volume_threshold = volume_threshold

        # on/off run tracking
        self._not_started = True
        self._last_on     = False
        self._ticks       = 0

        # frequency tracking
        self.track_frequency = track_frequency
        self.lock_frequency  = False
        self._history_size   = max(1, int(buffer_duration // self.time_step))
        self._history        = np.zeros((self._history_size, self.freq_bins), dtype=np.int64)
        self._history_sum    = np.zeros(self.freq_bins, dtype=np.int64)
        self._history_index  = 0

    # ------------------------------------------------------------------
    # Filter settings
    # ------------------------------------------------------------------

    @property
    def volume_min(self) -> float:
        return self._volume_min

    @volume_min.setter
    def volume_min(self, v):
        v = min(0.0, as_number(v, DEFAULTS["volume_min"]))
        self._volume_min = v
        self._volume_max = max(self._volume_max, v)

    @property
    def volume_max(self) -> float:
        return self._volume_max

    @volume_max.setter
    def volume_max(self, v):
        v = min(0.0, as_number(v, DEFAULTS["volume_max"]))
        self._volume_max = v
        self._volume_min = min(self._volume_min, v)

    def _freq_to_bin(self, f: float) -> int:
        f = min(max(f, 0.0), self.max_freq)
        # bin 0 is DC
        return min(max(int(math.floor(f / self.freq_step + 0.5)), 1), self.freq_bins)

    @property
    def frequency_filter_min(self) -> float:
        return max(self._bin_low * self.freq_step, 0.0)

    @frequency_filter_min.setter
    def frequency_filter_min(self, f):
        self._bin_low = self._freq_to_bin(as_number(f, DEFAULTS["frequency_min"]))
        self._bin_high = max(self._bin_low, self._bin_high)

    @property
    def frequency_filter_max(self) -> float:
        return min(self._bin_high * self.freq_step, self.max_freq)

    @frequency_filter_max.setter
    def frequency_filter_max(self, f):
        self._bin_high = self._freq_to_bin(as_number(f, DEFAULTS["frequency_max"]))
        self._bin_low = min(self._bin_high, self._bin_low)

    def set_frequency(self, f: float) -> None:
        """Listen to a single frequency."""
        self.frequency_filter_min = f
        self.frequency_filter_max = f

    @property
    def volume_threshold(self) -> int:
        return self._volume_threshold

    @volume_threshold.setter
    def volume_threshold(self, v):
        v = as_number(v, DEFAULTS["volume_threshold"])
        self._volume_threshold = min(max(int(math.floor(v + 0.5)), 0), 255)

    # ------------------------------------------------------------------
    # Audio input
    # ------------------------------------------------------------------

    def process(self, samples) -> None:
        """Analyse samples; an incomplete trailing frame waits for the next call."""
        data = np.concatenate((self._pending, np.asarray(samples, dtype=np.float64).ravel()))
        n_frames = len(data) // self.fft_size
        for i in range(n_frames):
            self.process_frame(data[i * self.fft_size:(i + 1) * self.fft_size])
        self._pending = data[n_frames * self.fft_size:]

    def process_frame(self, frame) -> Frame:
        spectrum = np.abs(np.fft.rfft(np.asarray(frame, dtype=np.float64) * self._window))
        spectrum = spectrum[: self.freq_bins] / self.fft_size
        db = 20.0 * np.log10(spectrum + 1e-12)
        span = max(self._volume_max - self._volume_min, 1e-9)
        levels = np.clip(np.floor(255.0 * (db - self._volume_min) / span + 0.5), 0, 255).astype(np.int64)

        volume = float(np.mean(levels[self._bin_low:self._bin_high + 1]))
        is_on = volume >= self._volume_threshold
        self._record(is_on)

        if self.track_frequency:
            self._track(levels)

        info = Frame(levels, self.freq_step, self.time_step,
                     self._bin_low, self._bin_high, volume, is_on)
        if self.on_frame is not None:
            self.on_frame(info)
        return info

    def stop(self) -> None:
        """End of input: push the run in progress and flush the decoder."""
        if not self._not_started:
            self._push()
            self._ticks = 0
        self.decoder.flush()

    # ------------------------------------------------------------------
    # Internal: on/off runs
    # ------------------------------------------------------------------

    def _record(self, is_on: bool):
        if self._not_started:
            if not is_on:
                return      # wait until we hear something
            self._not_started = False
            self._last_on = True
            self._ticks = 0

        if self._last_on == is_on:
            self._ticks += 1
            if self._ticks * self.time_step > self.flush_time:
                # a very long run: hand it over now and keep counting
                self._push(is_on)
                self._ticks = 0
        else:
            self._push(not is_on)
            self._last_on = is_on
            self._ticks = 1

    def _push(self, on: Optional[bool] = None):
        if on is None:
            on = self._last_on
        self.decoder.add_timing((1 if on else -1) * self._ticks * self.time_step)

    # ------------------------------------------------------------------
    # Internal: frequency tracking
    # ------------------------------------------------------------------

    def _track(self, levels: np.ndarray):
        if not levels[1:].sum():
            return
        row = self._history[self._history_index]
        self._history_sum += levels - row
        self._history_sum[0] = 0    # ignore DC
        row[:] = levels
        self._history_index = (self._history_index + 1) % self._history_size

        if not self.lock_frequency:
            peak = int(np.argmax(self._history_sum[1:])) + 1
            if peak != self._bin_low or peak != self._bin_high:
                logger.debug("frequency filter -> %.0f Hz", peak * self.freq_step)
            self.set_frequency(peak * self.freq_step)


# ---------------------------------------------------------------------------
# WAV driver
# ---------------------------------------------------------------------------

def read_wav(path: str):
    """Read a WAV file as (sample_rate, mono float samples in -1..1)."""
    try:
        sr, data = wavfile.read(path)
    except (OSError, ValueError) as e:
        raise AudioFileError(f"Could not read {path}: {e}") from e

    if np.issubdtype(data.dtype, np.integer):
        data = data.astype(np.float64) / float(np.iinfo(data.dtype).max)
    else:
        data = data.astype(np.float64)
    if data.ndim > 1:
        data = data[:, 0]
    return int(sr), data


def decode_wav(path: str, decoder: MorseDecoder, **kwargs) -> MorseListener:
    """Run a WAV file through a MorseListener into decoder; returns the listener."""
    sr, data = read_wav(path)
    logger.debug("%s: %d samples at %d Hz", path, len(data), sr)
    listener = MorseListener(decoder, sr, **kwargs)
    listener.process(data)
    listener.stop()
    return listener
