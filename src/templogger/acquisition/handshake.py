# src/templogger/acquisition/handshake.py
"""
Device discovery.

Scans channels 0..max_channels-1 for the logger. A channel is confirmed
when the first byte of a poll equals the handshake character the device
emits while it waits for a host. Each channel gets a boot delay and a
bounded number of polls, so a busy port or an unrelated peripheral can
never hang the scan.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import (
    ChannelUnavailable,
    DiscoveryExhausted,
    HandshakeTimeout,
    TransportWriteFailure,
)
from ..utils.logging_cfg import get_logger

log = get_logger(__name__)

SENTINEL = b"W"
DEFAULT_BAUD = 19200
DEFAULT_MODE = "8N1"


@dataclass(frozen=True)
class DiscoveryResult:
    channel: int
    port_name: Optional[str]
    attempts_used: int


class HandshakeScanner:
    def __init__(
        self,
        transport,
        max_channels: int = 20,
        baud: int = DEFAULT_BAUD,
        mode: str = DEFAULT_MODE,
        sentinel: bytes = SENTINEL,
        attempts: int = 100,
        boot_delay_s: float = 1.7,
        poll_interval_s: float = 0.005,
        read_size: int = 16,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if len(sentinel) != 1:
            raise ValueError("sentinel must be a single byte")
        self.transport = transport
        self.max_channels = max_channels
        self.baud = baud
        self.mode = mode
        self.sentinel = sentinel
        self.attempts = attempts
        self.boot_delay_s = boot_delay_s
        self.poll_interval_s = poll_interval_s
        self.read_size = read_size
        self._sleep = sleep

    def discover(self) -> DiscoveryResult:
        """Return the first channel that answers the handshake, left open."""
        for channel in range(self.max_channels):
            try:
                used = self.probe(channel)
            except (ChannelUnavailable, HandshakeTimeout) as e:
                log.debug("%s", e)
                continue
            port_name = self.transport.port_name(channel)
            log.debug("Handshake received on channel %d (%s) after %d polls",
                      channel, port_name or "?", used)
            return DiscoveryResult(channel=channel, port_name=port_name, attempts_used=used)

        raise DiscoveryExhausted(self.max_channels)

    def probe(self, channel: int) -> int:
        """
        Open one channel and poll it for the handshake.

        Returns the number of polls it took. On failure the channel is
        closed again and ChannelUnavailable / HandshakeTimeout is raised.
        """
        if not self.transport.open(channel, self.baud, self.mode):
            self.transport.close(channel)
            raise ChannelUnavailable(channel)

        self._sleep(self.boot_delay_s)

        remaining = self.attempts
        while remaining > 0:
            self._sleep(self.poll_interval_s)
            try:
                chunk = self.transport.poll(channel, self.read_size)
            except TransportWriteFailure as e:
                self.transport.close(channel)
                raise ChannelUnavailable(channel, str(e)) from e
            remaining -= 1
            log.debug("Channel %d poll %d: %r", channel, self.attempts - remaining, chunk)
            if chunk[:1] == self.sentinel:
                return self.attempts - remaining

        self.transport.close(channel)
        raise HandshakeTimeout(channel, self.attempts)


def discover(transport, **kwargs) -> DiscoveryResult:
    """Convenience wrapper around HandshakeScanner(transport, **kwargs).discover()."""
    return HandshakeScanner(transport, **kwargs).discover()
