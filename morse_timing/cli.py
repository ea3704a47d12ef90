"""
Command line interface.

Usage:
    python -m morse_timing encode "CQ DE G0ABC" --wpm 18 --fwpm 12
    python -m morse_timing decode 60 -60 180 -180 60 -420 60
    python -m morse_timing decode-wav cq.wav --adaptive --wpm 12
    python -m morse_timing generate "CQ TEST" cq.wav --snr 6

Options shared by the decode commands:
    --wpm, --fwpm   initial speed
    --adaptive      follow the sender's speed
    --lock          adaptive, but start with the estimate frozen
    --config FILE   JSON config (command line options override it)
    --verbose       debug logging to stderr
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from .codec import text_to_morse, text_to_ditdah
from .config import CONFIG_FILE, DecoderConfig, build_decoder, load_config
from .decoder import MessageEvent
from .errors import MorseError
from .generator import DEFAULT_FREQUENCY, DEFAULT_SAMPLE_RATE, add_noise, make_tone, write_wav_mono_int16
from .listener import decode_wav
from .timings import text_to_timings, total_duration


def _add_speed_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--wpm", type=float, default=None, help="Character speed in WPM")
    p.add_argument("--fwpm", type=float, default=None, help="Farnsworth speed in WPM")


def _add_decode_args(p: argparse.ArgumentParser) -> None:
    _add_speed_args(p)
    p.add_argument("--adaptive", action="store_true", help="Track the sender's speed")
    p.add_argument("--lock", action="store_true", help="Adaptive with the speed estimate locked")
    p.add_argument("--prosigns", action="store_true", help="Decode prosigns such as <AR>")
    p.add_argument("--config", default=None, help=f"JSON config file (e.g. {CONFIG_FILE})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="morse-timing",
        description="Convert between text, Morse code and on/off timings.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("encode", help="Text to morse and timings")
    p.add_argument("text")
    _add_speed_args(p)

    p = sub.add_parser("decode", help="Signed ms timings to text")
    p.add_argument("timings", nargs="+", type=float,
                   help="Durations in ms, +ve tone, -ve silence")
    _add_decode_args(p)

    p = sub.add_parser("decode-wav", help="Decode a WAV recording")
    p.add_argument("wav")
    _add_decode_args(p)
    p.add_argument("--tone-hz", type=float, default=None, help="Tone frequency to listen to")
    p.add_argument("--fft-size", type=int, default=None, help="Samples per analysis frame")
    p.add_argument("--track-frequency", action="store_true", help="Follow the loudest tone")

    p = sub.add_parser("generate", help="Write text as a keyed tone WAV file")
    p.add_argument("text")
    p.add_argument("out")
    _add_speed_args(p)
    p.add_argument("--tone-hz", type=float, default=DEFAULT_FREQUENCY)
    p.add_argument("--sample-rate", type=int, default=DEFAULT_SAMPLE_RATE)
    p.add_argument("--snr", type=float, default=None, help="Add noise at this SNR in dB")
    p.add_argument("--seed", type=int, default=48)

    return parser


def _decoder_config(args) -> DecoderConfig:
    cfg = load_config(args.config) if args.config else DecoderConfig()
    if args.wpm is not None:
        cfg.wpm = args.wpm
    if args.fwpm is not None:
        cfg.fwpm = args.fwpm
    if args.adaptive or args.lock:
        cfg.adaptive = True
    if args.lock:
        cfg.lock_speed = True
    if args.prosigns:
        cfg.use_prosigns = True
    return cfg


def _print_message(ev: MessageEvent) -> None:
    print(ev.message, end="", flush=True)


def _run_decode(cfg: DecoderConfig, feed) -> int:
    decoder, _ = build_decoder(cfg, on_message=_print_message)
    feed(decoder)
    print()

    n_errors = decoder.message.count("#")
    print(f"Morse: {decoder.morse}")
    print(f"Speed: {decoder.wpm:.1f} WPM (Farnsworth {decoder.fwpm:.1f})  |  "
          f"{len(decoder.elements)} elements  {n_errors} error(s)")
    return 0


def cmd_encode(args) -> int:
    wpm = args.wpm if args.wpm is not None else 20
    translation = text_to_morse(args.text)
    timings = text_to_timings(args.text, wpm, args.fwpm)
    print(f"Text:    {translation.message}")
    print(f"Morse:   {translation.morse}")
    print(f"Spoken:  {text_to_ditdah(args.text)}")
    print(f"Timings: {' '.join(str(t) for t in timings)}")
    print(f"Length:  {total_duration(timings) / 1000.0:.2f}s")
    return 0


def cmd_decode(args) -> int:
    def feed(decoder):
        for t in args.timings:
            decoder.add_timing(t)
        decoder.flush()
    return _run_decode(_decoder_config(args), feed)


def cmd_decode_wav(args) -> int:
    cfg = _decoder_config(args)
    lcfg = cfg.listener
    if args.tone_hz is not None:
        lcfg.frequency_min = lcfg.frequency_max = args.tone_hz
    if args.fft_size is not None:
        lcfg.fft_size = args.fft_size
    if args.track_frequency:
        lcfg.track_frequency = True

    print(f"Decoding: {args.wav}")
    print(f"FFT: {lcfg.fft_size}pt  Tone: {lcfg.frequency_min:.0f}-{lcfg.frequency_max:.0f}Hz")
    print("-" * 60)

    def feed(decoder):
        decode_wav(args.wav, decoder,
                   fft_size=lcfg.fft_size,
                   volume_min=lcfg.volume_min,
                   volume_max=lcfg.volume_max,
                   frequency_min=lcfg.frequency_min,
                   frequency_max=lcfg.frequency_max,
                   volume_threshold=lcfg.volume_threshold,
                   flush_time=lcfg.flush_time,
                   track_frequency=lcfg.track_frequency,
                   buffer_duration=lcfg.buffer_duration)
    return _run_decode(cfg, feed)


def cmd_generate(args) -> int:
    wpm = args.wpm if args.wpm is not None else 20
    timings = text_to_timings(args.text, wpm, args.fwpm)
    samples = make_tone(timings, args.tone_hz, args.sample_rate)
    if args.snr is not None:
        samples = add_noise(samples, args.snr, np.random.default_rng(args.seed))
    write_wav_mono_int16(args.out, samples, args.sample_rate)
    print(f"wrote {args.out}  ({len(samples) / args.sample_rate:.2f}s, "
          f"{args.tone_hz:.0f}Hz, {wpm:.1f}WPM)")
    return 0


COMMANDS = {
    "encode":     cmd_encode,
    "decode":     cmd_decode,
    "decode-wav": cmd_decode_wav,
    "generate":   cmd_generate,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    try:
        return COMMANDS[args.command](args)
    except MorseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
