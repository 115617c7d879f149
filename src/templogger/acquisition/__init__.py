from .errors import (
    LoggerError,
    ChannelUnavailable,
    HandshakeTimeout,
    DiscoveryExhausted,
    InvalidConfiguration,
    TransportWriteFailure,
    FileWriteFailure,
)
from .transport import SerialTransport
from .handshake import HandshakeScanner, DiscoveryResult, discover
from .negotiator import SessionConfig, negotiate
from .record_file import RecordFile
from .ingestion import IngestionLoop, IngestionStats
from .session import Session, SessionRunner

__all__ = [
    "LoggerError",
    "ChannelUnavailable",
    "HandshakeTimeout",
    "DiscoveryExhausted",
    "InvalidConfiguration",
    "TransportWriteFailure",
    "FileWriteFailure",
    "SerialTransport",
    "HandshakeScanner",
    "DiscoveryResult",
    "discover",
    "SessionConfig",
    "negotiate",
    "RecordFile",
    "IngestionLoop",
    "IngestionStats",
    "Session",
    "SessionRunner",
]
