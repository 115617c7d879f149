# src/templogger/acquisition/record_file.py
"""
CSV record file for one logging session.

File name: Temperature_Dataset_<year>-<month>-<day>_<hour>.<min>.<sec>.csv
If that name is taken (two sessions inside the same second) the file
becomes ..._V2.csv, then _V3 and so on. Files are created with
exclusive mode, so an existing record is never overwritten.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import FileWriteFailure
from ..utils.logging_cfg import get_logger

log = get_logger(__name__)

FILE_PREFIX = "Temperature_Dataset_"
FILE_EXT = ".csv"
COLUMN_HEADER = (
    "Time (H:M:S),Delta Time(Sec),"
    "Sensor1 (Cel),Sensor2 (Cel),Sensor3 (Cel),Sensor4 (Cel)\n"
)
MAX_VERSIONS = 1000


def format_stamp(moment: datetime) -> str:
    """2018-9-11_14.5.7 style stamp (no zero padding)."""
    return (f"{moment.year}-{moment.month}-{moment.day}_"
            f"{moment.hour}.{moment.minute}.{moment.second}")


def format_interval(seconds: float) -> str:
    """Shortest exact text for the interval: 5 -> "5", 2.5 -> "2.5"."""
    text = repr(float(seconds))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def candidate_names(stamp: str):
    yield f"{FILE_PREFIX}{stamp}{FILE_EXT}"
    for version in range(2, MAX_VERSIONS + 1):
        yield f"{FILE_PREFIX}{stamp}_V{version}{FILE_EXT}"


class RecordFile:
    """Append-only record file. Use create() to make one."""

    def __init__(self, path: Path, handle, stamp: str, interval_seconds: float):
        self.path = path
        self.stamp = stamp
        self.interval_seconds = interval_seconds
        self.bytes_written = 0
        self._fp = handle
        self._header_written = False

    # ---- creation ----
    @classmethod
    def create(cls, interval_seconds: float, directory=".", now: Optional[datetime] = None) -> "RecordFile":
        """Create a new, uniquely named record file in directory."""
        directory = Path(directory)
        moment = (now or datetime.now()).replace(microsecond=0)
        stamp = format_stamp(moment)

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileWriteFailure(f"Cannot create output directory {directory}: {e}") from e

        for name in candidate_names(stamp):
            path = directory / name
            try:
                handle = open(path, "xb")
            except FileExistsError:
                log.debug("%s already exists", path)
                continue
            except OSError as e:
                raise FileWriteFailure(f"Cannot create {path}: {e}") from e
            log.debug("Created %s", path)
            return cls(path, handle, stamp, interval_seconds)

        raise FileWriteFailure(f"Too many record files for {stamp} in {directory}")

    # ---- writing ----
    def header_text(self) -> str:
        return (f"Date & Time:,{self.stamp}\n"
                f"Second per Sample:,{format_interval(self.interval_seconds)}\n\n"
                + COLUMN_HEADER)

    def write_header(self) -> None:
        if self._header_written:
            return
        self._write(self.header_text().encode("ascii"))
        self._header_written = True

    def append_chunk(self, chunk: bytes) -> None:
        """Append raw bytes exactly as received."""
        if chunk:
            self._write(chunk)

    def _write(self, data: bytes) -> None:
        if self._fp is None:
            raise FileWriteFailure(f"{self.path} is closed")
        try:
            self._fp.write(data)
            self._fp.flush()
        except OSError as e:
            raise FileWriteFailure(f"Write to {self.path} failed: {e}") from e
        self.bytes_written += len(data)

    # ---- teardown ----
    @property
    def closed(self) -> bool:
        return self._fp is None

    def close(self) -> None:
        if self._fp is None:
            return
        fp, self._fp = self._fp, None
        try:
            fp.close()
        except OSError as e:
            raise FileWriteFailure(f"Closing {self.path} failed: {e}") from e
        log.debug("Closed %s (%d bytes)", self.path, self.bytes_written)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
