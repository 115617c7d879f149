"""
config.py
---------
Loads logger_config.json and merges it over the built-in defaults.

A missing file is not an error (defaults are used); a malformed file
is logged and ignored. Used by the CLI to build every component.
"""

import json
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import List, Optional

from ..acquisition.errors import InvalidConfiguration
from .logging_cfg import get_logger

log = get_logger(__name__)

# Paths - relative to PROJECT ROOT
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
CONFIG_PATH = PROJECT_ROOT / "config" / "logger_config.json"

DEFAULT_BAUD = 19200

_POSITIVE_INTS = ("baud_rate", "max_channels", "handshake_attempts", "handshake_read_size", "chunk_size")
_NON_NEGATIVE_INTS = ("flush_size",)
_DELAYS = ("boot_delay_s", "poll_interval_s", "idle_sleep_s",
           "startup_delay_s", "prompt_delay_s", "logging_delay_s")


@dataclass
class LoggerConfig:
    # Transport
    baud_rate: int = DEFAULT_BAUD
    mode: str = "8N1"
    max_channels: int = 20
    port_names: Optional[List[str]] = None

    # Handshake
    handshake_char: str = "W"           # Uno sends 'W' at 200Hz
    handshake_attempts: int = 100
    handshake_read_size: int = 16
    boot_delay_s: float = 1.7           # Wait for Uno to boot after the port opens
    poll_interval_s: float = 0.005

    # Ingestion
    chunk_size: int = 2
    flush_size: int = 4096
    idle_sleep_s: float = 0.0
    exit_key: str = "e"

    # Console pacing
    startup_delay_s: float = 1.0
    prompt_delay_s: float = 2.0         # Hold the prompt until the Uno accepts a rate value
    logging_delay_s: float = 0.5

    # Output
    output_dir: str = "."

    # Unknown keys from the JSON file are kept but unused
    extra: dict = field(default_factory=dict, repr=False)

    @property
    def sentinel(self) -> bytes:
        return self.handshake_char.encode("ascii")[:1]

    def validate(self) -> None:
        """Raise InvalidConfiguration if any setting has the wrong type or range."""
        for name in _POSITIVE_INTS + _NON_NEGATIVE_INTS:
            value = getattr(self, name)
            low = 1 if name in _POSITIVE_INTS else 0
            if isinstance(value, bool) or not isinstance(value, int) or value < low:
                raise InvalidConfiguration(f"{name} must be an integer >= {low}, got {value!r}")
        for name in _DELAYS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not value >= 0:
                raise InvalidConfiguration(f"{name} must be a number of seconds >= 0, got {value!r}")
        for name in ("handshake_char", "exit_key"):
            value = getattr(self, name)
            if not isinstance(value, str) or len(value) != 1 or not value.isascii():
                raise InvalidConfiguration(f"{name} must be a single ASCII character, got {value!r}")
        if not isinstance(self.mode, str) or len(self.mode) != 3:
            raise InvalidConfiguration(f"mode must look like '8N1', got {self.mode!r}")
        if self.port_names is not None and (
                not isinstance(self.port_names, list)
                or not all(isinstance(p, str) and p for p in self.port_names)):
            raise InvalidConfiguration(f"port_names must be a list of port names, got {self.port_names!r}")
        if not isinstance(self.output_dir, str) or not self.output_dir:
            raise InvalidConfiguration(f"output_dir must be a path, got {self.output_dir!r}")

    def to_dict(self) -> dict:
        data = asdict(self)
        extra = data.pop("extra")
        data.update(extra)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LoggerConfig":
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        return cls(extra=extra, **kwargs)


def load_config(path=None) -> LoggerConfig:
    """Load config from logger_config.json, returning it merged over the defaults."""
    cfg_path = Path(path) if path else CONFIG_PATH
    merged = LoggerConfig().to_dict()

    if cfg_path.exists():
        try:
            with open(cfg_path, encoding="utf-8") as f:
                cfg = json.load(f)
            if not isinstance(cfg, dict):
                raise ValueError("top-level JSON value must be an object")
            merged.update(cfg)
            log.debug("Config loaded: %s", cfg_path)
        except (OSError, ValueError) as e:
            log.warning("Error loading config %s, using defaults: %s", cfg_path, e)
    else:
        log.debug("Config file not found at %s, using defaults", cfg_path)

    return LoggerConfig.from_dict(merged)


def save_config(config: LoggerConfig, path=None) -> bool:
    """Save config to disk."""
    cfg_path = Path(path) if path else CONFIG_PATH
    try:
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        with open(cfg_path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)
        log.info("Config saved to %s", cfg_path)
        return True
    except OSError as e:
        log.error("Error saving config %s: %s", cfg_path, e)
        return False
