# src/templogger/acquisition/console.py
"""
Operator console: banner, interval prompt, key-press cancel and the
live data echo.

Cancel sources only need a non-blocking is_set(); the ingestion loop
never touches the keyboard directly.
"""

import os
import sys
import threading
from typing import Callable, Optional

from .errors import InvalidConfiguration
from .negotiator import MAX_INTERVAL_S, MIN_INTERVAL_S, validate_interval

if os.name == "nt":
    import msvcrt
else:
    import select
    import termios
    import tty

RULE = "\n" + "-" * 74 + "\n"
BANNER = "DS18B20 Temperature Data Logger V1.0"
COLUMN_LEGEND = "HH:MM:SS|Secs| T1(C)| T2(C)| T3(C)| T4(C)"

PROMPT = f"Enter number of seconds per samples between {MIN_INTERVAL_S:g}s to {MAX_INTERVAL_S:g}s: "
RETRY_PROMPT = ("That is an invalid input, please enter number of seconds per samples "
                f"between {MIN_INTERVAL_S:g}s to {MAX_INTERVAL_S:g}s: ")


def print_banner(out=print):
    out(BANNER)
    out(RULE)


# ---------------------------------------------------
# Interval prompt
# ---------------------------------------------------
def prompt_interval(input_fn: Optional[Callable[[str], str]] = None,
                    max_attempts: Optional[int] = None) -> float:
    """
    Ask for a sampling interval until a value in range is entered.

    Each rejected line is discarded whole and the retry message shown.
    EOFError from input_fn propagates; after max_attempts rejections
    InvalidConfiguration is raised.
    """
    input_fn = input_fn or input
    prompt = PROMPT
    attempts = 0
    while True:
        line = input_fn(prompt)
        try:
            return validate_interval(line.strip())
        except InvalidConfiguration:
            attempts += 1
            if max_attempts is not None and attempts >= max_attempts:
                raise
            prompt = RETRY_PROMPT


# ---------------------------------------------------
# Cancel sources
# ---------------------------------------------------
class EventCancel:
    """Cancel signal backed by a threading.Event (programmatic stop, Ctrl+C)."""

    def __init__(self):
        self._event = threading.Event()

    def set(self):
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


class KeyPressCancel:
    """
    Set once the exit key has been pressed.

    On a POSIX terminal stdin is switched to cbreak mode on the first
    check, so single keystrokes arrive without Enter; leaving the
    context manager restores the terminal.
    """

    def __init__(self, exit_key: str = "e", stream=None):
        self.exit_key = exit_key.lower()
        self.stream = stream or sys.stdin
        self._hit = False
        self._eof = False
        self._saved_attrs = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restore()
        return False

    def _enter_cbreak(self):
        if self._saved_attrs is None and os.name != "nt" and self._isatty():
            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)

    def restore(self):
        if self._saved_attrs is not None:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def _isatty(self) -> bool:
        try:
            return self.stream.isatty()
        except (AttributeError, ValueError):
            return False

    def _read_keys(self) -> str:
        """Return the keystrokes waiting on the input, without blocking."""
        if os.name == "nt":
            keys = ""
            while msvcrt.kbhit():
                keys += msvcrt.getwch()
            return keys
        if self._eof:
            return ""
        try:
            fd = self.stream.fileno()
        except (OSError, ValueError):
            self._eof = True
            return ""
        ready, _, _ = select.select([fd], [], [], 0)
        if not ready:
            return ""
        data = os.read(fd, 64)
        if not data:
            self._eof = True
        return data.decode("utf-8", errors="ignore")

    def is_set(self) -> bool:
        if self._hit:
            return True
        self._enter_cbreak()
        if self.exit_key in self._read_keys().lower():
            self._hit = True
        return self._hit


def wait_for_key(message: str = "", out=print, stream=None):
    """Block until the operator presses a key (Enter when stdin is not a terminal)."""
    if message:
        out(message)
    stream = stream or sys.stdin
    if os.name == "nt":
        msvcrt.getwch()
        return
    try:
        interactive = stream.isatty()
    except (AttributeError, ValueError):
        interactive = False
    if interactive:
        fd = stream.fileno()
        saved = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            os.read(fd, 1)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
    else:
        stream.readline()


# ---------------------------------------------------
# Live display
# ---------------------------------------------------
class ConsoleDisplay:
    """Echo raw chunks to a text stream as they arrive."""

    def __init__(self, stream=None, encoding: str = "ascii"):
        self.stream = stream or sys.stdout
        self.encoding = encoding

    def __call__(self, chunk: bytes):
        self.stream.write(chunk.decode(self.encoding, errors="replace"))
        self.stream.flush()
