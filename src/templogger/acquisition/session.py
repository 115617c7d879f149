# src/templogger/acquisition/session.py
"""
One logging session, start to finish:

    discovery -> negotiation -> record file -> ingestion -> teardown

State travels in a Session object instead of module globals. Transport
and file failures are fatal: the record file and the channel are closed
before the error is re-raised to the caller.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .console import COLUMN_LEGEND, RULE
from .errors import FileWriteFailure, TransportWriteFailure
from .handshake import DiscoveryResult, HandshakeScanner
from .ingestion import IngestionLoop, IngestionStats
from .negotiator import SessionConfig, negotiate
from .record_file import RecordFile
from ..utils.config import LoggerConfig
from ..utils.logging_cfg import get_logger

log = get_logger(__name__)


@dataclass
class Session:
    discovery: Optional[DiscoveryResult] = None
    config: Optional[SessionConfig] = None
    record_path: Optional[Path] = None
    stats: IngestionStats = field(default_factory=IngestionStats)
    interrupted: bool = False


class SessionRunner:
    def __init__(
        self,
        config: LoggerConfig,
        transport,
        out: Callable[[str], None] = print,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.transport = transport
        self.out = out
        self.sleep = sleep

    def scanner(self) -> HandshakeScanner:
        cfg = self.config
        return HandshakeScanner(
            self.transport,
            max_channels=cfg.max_channels,
            baud=cfg.baud_rate,
            mode=cfg.mode,
            sentinel=cfg.sentinel,
            attempts=cfg.handshake_attempts,
            boot_delay_s=cfg.boot_delay_s,
            poll_interval_s=cfg.poll_interval_s,
            read_size=cfg.handshake_read_size,
            sleep=self.sleep,
        )

    def connect(self, session: Session) -> DiscoveryResult:
        self.out("Establishing connection to logger...")
        self.sleep(self.config.startup_delay_s)
        session.discovery = self.scanner().discover()
        self.out(f"Port {session.discovery.channel + 1} was successfully established.\n")
        return session.discovery

    def run(self, interval_provider: Callable[[], float], cancel, display=None) -> Session:
        """
        Run a full session. DiscoveryExhausted, TransportWriteFailure and
        FileWriteFailure propagate after cleanup.
        """
        session = Session()
        self.connect(session)
        channel = session.discovery.channel
        record = None

        try:
            # Hold the prompt until the device is ready to accept a rate value
            self.sleep(self.config.prompt_delay_s)
            session.config = SessionConfig(interval_provider())
            negotiate(self.transport, channel, session.config)

            record = RecordFile.create(session.config.interval_seconds, self.config.output_dir)
            record.write_header()
            session.record_path = record.path
            self.out(f"\nPrinting data to: {record.path.name}\n")

            self.out("Initializing logging...")
            self.sleep(self.config.logging_delay_s)

            loop = IngestionLoop(
                self.transport,
                channel,
                chunk_size=self.config.chunk_size,
                flush_size=self.config.flush_size,
                idle_sleep_s=self.config.idle_sleep_s,
                sleep=self.sleep,
                stats=session.stats,
            )
            self.out(RULE)
            self.out(f"Press '{self.config.exit_key}' on the keyboard at any time to exit data logging.\n")
            self.out(COLUMN_LEGEND)
            try:
                loop.run(record, cancel, display)
            except KeyboardInterrupt:
                session.interrupted = True
                session.stats.stopped_at = time.time()
                log.warning("Logging interrupted")
        except (TransportWriteFailure, FileWriteFailure) as e:
            log.error("Session aborted: %s", e)
            raise
        finally:
            self._teardown(record, channel)

        log.info("Session finished: %s", session.stats.to_dict())
        return session

    def _teardown(self, record: Optional[RecordFile], channel: int):
        try:
            if record is not None:
                record.close()
        finally:
            self.transport.close(channel)
