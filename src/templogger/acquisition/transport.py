# src/templogger/acquisition/transport.py
"""
Numbered-channel serial transport over pyserial.

Channel identifiers are small integers that map onto OS port names
(COM1.. on Windows, ttyACM*/ttyUSB*/ttyS*.. elsewhere). Every poll is
non-blocking: the port is opened with timeout=0 and callers insert
their own waits.
"""

import platform
from typing import Dict, List, Optional, Sequence

import serial

from .errors import TransportWriteFailure
from ..utils.logging_cfg import get_logger

log = get_logger(__name__)

_BYTESIZES = {
    "5": serial.FIVEBITS,
    "6": serial.SIXBITS,
    "7": serial.SEVENBITS,
    "8": serial.EIGHTBITS,
}
_PARITIES = {
    "N": serial.PARITY_NONE,
    "E": serial.PARITY_EVEN,
    "O": serial.PARITY_ODD,
    "M": serial.PARITY_MARK,
    "S": serial.PARITY_SPACE,
}
_STOPBITS = {
    "1": serial.STOPBITS_ONE,
    "2": serial.STOPBITS_TWO,
}

_POSIX_PORTS = (
    # USB serial adapters first so the default 20-channel scan reaches them
    [f"/dev/ttyACM{i}" for i in range(4)]
    + [f"/dev/ttyUSB{i}" for i in range(6)]
    + [f"/dev/ttyS{i}" for i in range(16)]
    + ["/dev/ttyAMA0", "/dev/ttyAMA1",
       "/dev/rfcomm0", "/dev/rfcomm1", "/dev/ircomm0", "/dev/ircomm1",
       "/dev/cuau0", "/dev/cuau1", "/dev/cuau2", "/dev/cuau3",
       "/dev/cuaU0", "/dev/cuaU1", "/dev/cuaU2", "/dev/cuaU3"]
)


def parse_mode(mode: str) -> Dict:
    """Translate an "8N1"-style mode string into pyserial keyword arguments."""
    if not mode or len(mode) != 3:
        raise ValueError(f"Invalid serial mode {mode!r} (expected e.g. '8N1')")
    bits, parity, stop = mode[0], mode[1].upper(), mode[2]
    try:
        return {
            "bytesize": _BYTESIZES[bits],
            "parity": _PARITIES[parity],
            "stopbits": _STOPBITS[stop],
        }
    except KeyError:
        raise ValueError(f"Invalid serial mode {mode!r}") from None


def default_port_names(system: Optional[str] = None) -> List[str]:
    """Port name table indexed by channel identifier."""
    system = system or platform.system()
    if system == "Windows":
        return [f"COM{i + 1}" for i in range(32)]
    return list(_POSIX_PORTS)


class SerialTransport:
    """
    open/close/poll/send on numbered channels.

    Each channel holds at most one open serial.Serial. The discovery
    engine opens and closes channels freely; after confirmation the
    ingestion loop keeps using the same channel id.
    """

    def __init__(self, port_names: Optional[Sequence[str]] = None, serial_factory=None):
        self.port_names = list(port_names) if port_names else default_port_names()
        self._serial_factory = serial_factory or serial.Serial
        self._open: Dict[int, serial.Serial] = {}

    def port_name(self, channel: int) -> Optional[str]:
        if 0 <= channel < len(self.port_names):
            return self.port_names[channel]
        return None

    def open(self, channel: int, baud: int, mode: str = "8N1") -> bool:
        """Open a channel. Returns False if the port is absent or busy."""
        name = self.port_name(channel)
        if name is None:
            log.debug("Channel %d has no port name", channel)
            return False
        if channel in self._open:
            return True
        try:
            ser = self._serial_factory(
                port=name,
                baudrate=baud,
                timeout=0,
                write_timeout=1,
                **parse_mode(mode)
            )
        except (serial.SerialException, OSError, ValueError) as e:
            log.debug("Could not open %s: %s", name, e)
            return False
        self._open[channel] = ser
        log.debug("Opened %s at %d baud (%s)", name, baud, mode)
        return True

    def close(self, channel: int) -> None:
        ser = self._open.pop(channel, None)
        if ser is None:
            return
        try:
            ser.close()
        except (serial.SerialException, OSError) as e:
            log.debug("Error closing %s: %s", self.port_name(channel), e)

    def close_all(self) -> None:
        for channel in list(self._open):
            self.close(channel)

    def is_open(self, channel: int) -> bool:
        return channel in self._open

    def poll(self, channel: int, max_bytes: int) -> bytes:
        """Return whatever is waiting on the channel, up to max_bytes (may be empty)."""
        ser = self._open.get(channel)
        if ser is None:
            return b""
        try:
            return bytes(ser.read(max_bytes))
        except (serial.SerialException, OSError) as e:
            raise TransportWriteFailure(f"Read from {self.port_name(channel)} failed: {e}") from e

    def send(self, channel: int, byte: int) -> None:
        """Write a single byte to the channel."""
        ser = self._open.get(channel)
        if ser is None:
            raise TransportWriteFailure(f"Channel {channel} is not open")
        try:
            ser.write(bytes([byte & 0xFF]))
            ser.flush()
        except (serial.SerialException, OSError) as e:
            raise TransportWriteFailure(f"Write to {self.port_name(channel)} failed: {e}") from e
