# src/templogger/acquisition/errors.py
"""
Error taxonomy for a logging session.

Recoverable (handled inside discovery / the prompt loop):
- ChannelUnavailable
- HandshakeTimeout
- InvalidConfiguration

Fatal (surfaced to the operator):
- DiscoveryExhausted
- TransportWriteFailure
- FileWriteFailure
"""


class LoggerError(Exception):
    """Base class for all data-logger errors."""


class ChannelUnavailable(LoggerError):
    """The transport could not open a channel (busy or absent)."""

    def __init__(self, channel: int, reason: str = ""):
        self.channel = channel
        self.reason = reason
        msg = f"Channel {channel} unavailable"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class HandshakeTimeout(LoggerError):
    """The sentinel byte was not observed within the attempt budget."""

    def __init__(self, channel: int, attempts: int):
        self.channel = channel
        self.attempts = attempts
        super().__init__(f"Port {channel} is not responding ({attempts} polls without handshake)")


class DiscoveryExhausted(LoggerError):
    """No channel in the scanned range answered the handshake."""

    MESSAGE = "No data loggers were detected. Please check your connections & try again."

    def __init__(self, channels_scanned: int):
        self.channels_scanned = channels_scanned
        super().__init__(self.MESSAGE)


class InvalidConfiguration(LoggerError, ValueError):
    """A sampling interval or config value outside its accepted range, or of the wrong type."""


class TransportWriteFailure(LoggerError):
    """Reading from or writing to the confirmed channel failed."""


class FileWriteFailure(LoggerError):
    """The record file could not be created or written."""
