"""
Decoder configuration.

A DecoderConfig can be saved to and loaded from JSON. Keys missing from a
file take their defaults, unknown keys are ignored, and a file that cannot
be read gives the defaults back rather than an error.

    {
      "wpm": 15,
      "fwpm": 10,
      "adaptive": true,
      "listener": {"fft_size": 128, "frequency_min": 600, "frequency_max": 600}
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Callable, Dict, Optional, Tuple

from .adaptive import DEFAULT_BUFFER_SIZE, AdaptiveSpeed
from .decoder import (DEFAULT_FWPM, DEFAULT_NOISE_THRESHOLD, DEFAULT_WPM,
                      MessageEvent, MorseDecoder, SpeedEvent)
from .listener import DEFAULT_BUFFER_DURATION, DEFAULT_FLUSH_TIME, DEFAULTS

logger = logging.getLogger(__name__)

CONFIG_FILE = "morse_timing.json"


@dataclass
class ListenerConfig:
    fft_size:         int   = DEFAULTS["fft_size"]
    volume_min:       float = DEFAULTS["volume_min"]
    volume_max:       float = DEFAULTS["volume_max"]
    frequency_min:    float = DEFAULTS["frequency_min"]
    frequency_max:    float = DEFAULTS["frequency_max"]
    volume_threshold: int   = DEFAULTS["volume_threshold"]
    flush_time:       float = DEFAULT_FLUSH_TIME
    track_frequency:  bool  = False
    buffer_duration:  float = DEFAULT_BUFFER_DURATION


@dataclass
class DecoderConfig:
    wpm:                 float = DEFAULT_WPM
    fwpm:                Optional[float] = None
    default_wpm:         float = DEFAULT_WPM
    default_fwpm:        float = DEFAULT_FWPM
    noise_threshold:     float = DEFAULT_NOISE_THRESHOLD
    use_prosigns:        bool  = False
    farnsworth_boundary: bool  = False
    adaptive:            bool  = False
    buffer_size:         int   = DEFAULT_BUFFER_SIZE
    lock_speed:          bool  = False
    listener:            ListenerConfig = field(default_factory=ListenerConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecoderConfig":
        names = {f.name for f in fields(cls)} - {"listener"}
        cfg = cls(**{k: v for k, v in data.items() if k in names})
        listener = data.get("listener")
        if isinstance(listener, dict):
            lnames = {f.name for f in fields(ListenerConfig)}
            cfg.listener = ListenerConfig(**{k: v for k, v in listener.items() if k in lnames})
        return cfg


def load_config(path: str = CONFIG_FILE) -> DecoderConfig:
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        return DecoderConfig()
    except (OSError, ValueError) as e:
        logger.warning("Could not load config %s: %s", path, e)
        return DecoderConfig()

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return DecoderConfig()
    return DecoderConfig.from_dict(data)


def save_config(config: DecoderConfig, path: str = CONFIG_FILE) -> None:
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)


def build_decoder(
    config: DecoderConfig,
    on_message: Optional[Callable[[MessageEvent], None]] = None,
    on_speed_change: Optional[Callable[[SpeedEvent], None]] = None,
) -> Tuple[MorseDecoder, Optional[AdaptiveSpeed]]:
    """Decoder set up from config, plus its AdaptiveSpeed if adaptive is on."""
    decoder = MorseDecoder(
        wpm                 = config.wpm,
        fwpm                = config.fwpm,
        on_message          = on_message,
        on_speed_change     = on_speed_change,
        noise_threshold     = config.noise_threshold,
        use_prosigns        = config.use_prosigns,
        default_wpm         = config.default_wpm,
        default_fwpm        = config.default_fwpm,
        farnsworth_boundary = config.farnsworth_boundary,
    )
    tracker = None
    if config.adaptive:
        tracker = AdaptiveSpeed(decoder, config.buffer_size, locked=config.lock_speed)
    return decoder, tracker
