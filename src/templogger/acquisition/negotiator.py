# src/templogger/acquisition/negotiator.py
"""
Session negotiation: validate the sampling interval and send it to the
confirmed device as a single byte.

The device never acknowledges the byte. If it is lost on the wire the
logger keeps its default rate and the record header will disagree with
the data; there is no way to detect that from the host.
"""

from dataclasses import dataclass

from .errors import InvalidConfiguration
from ..utils.logging_cfg import get_logger

log = get_logger(__name__)

MIN_INTERVAL_S = 1.0
MAX_INTERVAL_S = 127.0


def validate_interval(value, low: float = MIN_INTERVAL_S, high: float = MAX_INTERVAL_S) -> float:
    """Coerce value to float and check it lies in [low, high]."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Sampling interval must be a number, got {value!r}") from None
    if seconds != seconds or not (low <= seconds <= high):  # NaN fails the first test
        raise InvalidConfiguration(
            f"Sampling interval must be between {low:g}s and {high:g}s, got {value!r}"
        )
    return seconds


@dataclass(frozen=True)
class SessionConfig:
    interval_seconds: float

    def __post_init__(self):
        object.__setattr__(self, "interval_seconds", validate_interval(self.interval_seconds))

    @property
    def wire_byte(self) -> int:
        """The byte sent to the device: whole seconds, fractional part dropped."""
        return int(self.interval_seconds)


def negotiate(transport, channel: int, interval_seconds) -> SessionConfig:
    """Send the sampling interval to the device. Nothing is read back."""
    config = interval_seconds if isinstance(interval_seconds, SessionConfig) \
        else SessionConfig(interval_seconds)
    transport.send(channel, config.wire_byte)
    log.info("Sampling interval %gs sent to channel %d", config.interval_seconds, channel)
    return config
