"""
Keyed-tone synthesis for test signals.

Turns signed ms timings into a mono tone:
- sine at ``frequency`` keyed on for positive durations
- second-order low-pass at 1.5x the tone to soften key clicks
- at least 5 ms of trailing silence so the filter can ring down

    samples = make_tone(text_to_timings("CQ TEST"), frequency=550, sample_rate=8000)
    samples = add_noise(samples, snr_db=6, rng=np.random.default_rng(48))
    write_wav_mono_int16("cq.wav", samples, 8000)

Requirements:
    pip install numpy scipy
"""

from __future__ import annotations

import wave
from typing import Sequence

import numpy as np
from scipy import signal

DEFAULT_FREQUENCY   = 550.0
DEFAULT_SAMPLE_RATE = 8000
MIN_END_PADDING_MS  = 5
LOWPASS_FACTOR      = 1.5     # cutoff as a multiple of the tone frequency
GAIN                = 0.813   # the filter overshoots to ~1.23; keep peaks below 1
PEAK_LIMIT          = 0.98


def build_key(timings: Sequence[float], sample_rate: int) -> np.ndarray:
    """0/1 keying envelope, one sample per sample period of the timings."""
    key = []
    for t in timings:
        n = int(round(sample_rate * abs(t) / 1000.0))
        key.append(np.full(n, 1.0 if t > 0 else 0.0))
    if not key:
        return np.zeros(0, dtype=np.float64)
    return np.concatenate(key)


def make_tone(
    timings: Sequence[float],
    frequency: float = DEFAULT_FREQUENCY,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    end_padding: float = MIN_END_PADDING_MS,
) -> np.ndarray:
    """Low-pass filtered sine wave keyed by timings."""
    timings = list(timings)
    if not timings:
        return np.zeros(0, dtype=np.float64)
    timings.append(-max(MIN_END_PADDING_MS, end_padding))

    key = build_key(timings, sample_rate)
    t = np.arange(len(key), dtype=np.float64) / sample_rate
    tone = np.sin(2.0 * np.pi * frequency * t) * key

    cutoff = min(LOWPASS_FACTOR * frequency, 0.45 * sample_rate)
    b, a = signal.butter(2, cutoff, btype="low", fs=sample_rate)
    return signal.lfilter(b, a, tone) * GAIN


def add_noise(samples: np.ndarray, snr_db: float, rng: np.random.Generator) -> np.ndarray:
    """Add white Gaussian noise at snr_db relative to the RMS of samples."""
    tone_rms = float(np.sqrt(np.mean(samples * samples))) if len(samples) else 0.0
    if tone_rms <= 0:
        raise ValueError("Tone RMS is zero; timings produced no keyed symbols.")
    noise = rng.normal(0.0, 1.0, len(samples))
    noise *= tone_rms / (10.0 ** (snr_db / 20.0)) / float(np.sqrt(np.mean(noise * noise)))
    mix = samples + noise
    peak = float(np.max(np.abs(mix)))
    if peak > PEAK_LIMIT:
        mix *= PEAK_LIMIT / peak
    return mix


def write_wav_mono_int16(path: str, samples: np.ndarray, sample_rate: int) -> None:
    clipped = np.clip(samples, -1.0, 1.0)
    pcm = (clipped * 32767.0).astype(np.int16)

    with wave.open(path, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
