# src/templogger/acquisition/ingestion.py
"""
Streaming ingestion loop.

Polls the confirmed channel for small chunks and forwards each one to the
record file and the live display, in arrival order. Runs until the cancel
signal is set; teardown belongs to the caller.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..utils.logging_cfg import get_logger

log = get_logger(__name__)


@dataclass
class IngestionStats:
    polls: int = 0
    chunks: int = 0
    bytes_received: int = 0
    bytes_flushed: int = 0
    started_at: Optional[float] = None
    stopped_at: Optional[float] = None

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.stopped_at if self.stopped_at is not None else time.time()
        return end - self.started_at

    def to_dict(self) -> dict:
        elapsed = self.elapsed
        return {
            "polls": self.polls,
            "chunks": self.chunks,
            "bytes_received": self.bytes_received,
            "bytes_flushed": self.bytes_flushed,
            "elapsed_s": elapsed,
            "rate_bps": self.bytes_received / elapsed if elapsed > 0 else 0,
        }


@dataclass
class IngestionLoop:
    transport: object
    channel: int
    chunk_size: int = 2
    flush_size: int = 4096
    idle_sleep_s: float = 0.0
    sleep: Callable[[float], None] = time.sleep
    stats: IngestionStats = field(default_factory=IngestionStats)

    def flush(self) -> int:
        """Discard whatever the device sent while it was booting."""
        stale = self.transport.poll(self.channel, self.flush_size)
        self.stats.bytes_flushed += len(stale)
        if stale:
            log.debug("Discarded %d stale bytes from channel %d", len(stale), self.channel)
        return len(stale)

    def run(self, sink, cancel, display=None) -> IngestionStats:
        """
        Ingest until cancel.is_set() returns True.

        sink    - object with append_chunk(bytes)
        cancel  - object with a non-blocking is_set()
        display - optional callable(bytes) for the live console view
        """
        self.flush()
        self.stats.started_at = time.time()
        log.info("Logging started on channel %d", self.channel)

        while not cancel.is_set():
            chunk = self.transport.poll(self.channel, self.chunk_size)
            self.stats.polls += 1
            if not chunk:
                if self.idle_sleep_s:
                    self.sleep(self.idle_sleep_s)
                continue

            self.stats.chunks += 1
            self.stats.bytes_received += len(chunk)
            sink.append_chunk(chunk)
            if display is not None:
                display(chunk)

        self.stats.stopped_at = time.time()
        log.info("Logging stopped: %d bytes in %d chunks (%.1fs)",
                 self.stats.bytes_received, self.stats.chunks, self.stats.elapsed)
        return self.stats


def run(transport, channel: int, sink, cancel, display=None, **kwargs) -> IngestionStats:
    """Convenience wrapper around IngestionLoop(...).run(...)."""
    return IngestionLoop(transport, channel, **kwargs).run(sink, cancel, display)
