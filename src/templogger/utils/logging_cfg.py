"""
logging_cfg.py
--------------
Centralized logging configuration for the data logger.

Features:
✔ Console logging (INFO+, DEBUG+ in verbose mode)
✔ Rotating file logging for persistent debug logs
✔ Uniform formatting across modules
✔ Optional colorized console output
"""

import logging
import logging.handlers
import sys
from pathlib import Path

# ---------------------------------------------------
# CONFIG
# ---------------------------------------------------
LOGGER_NAME = "templogger"
LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "templogger.log"

ENABLE_COLORS = True  # Toggle ANSI console colors


# ---------------------------------------------------
# Colored Log Formatter
# ---------------------------------------------------
class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[36m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[91m",
    }
    RESET = "\033[0m"

    def format(self, record):
        level = record.levelname
        if ENABLE_COLORS and level in self.COLORS:
            # Work on a copy so the file handler keeps the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{self.COLORS[level]}{level}{self.RESET}"
        return super().format(record)


# ---------------------------------------------------
# Build Logger
# ---------------------------------------------------
def _build_logger(log_file=None):
    """Create and configure the package logger only once."""
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:  # Already initialized
        return logger

    logger.setLevel(logging.DEBUG)

    # ---- Console ----
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.set_name("console")

    console_format = ColorFormatter(
        "[%(levelname)s] %(asctime)s — %(name)s — %(message)s",
        datefmt="%H:%M:%S"
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # ---- Rotating File Handler ----
    path = Path(log_file) if log_file else LOG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=3 * 1024 * 1024,    # 3 MB
            backupCount=5,
            encoding="utf-8"
        )
    except OSError as e:
        logger.warning("File logging disabled (%s): %s", path, e)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.set_name("file")
        file_format = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


# ---------------------------------------------------
# Public Access Functions
# ---------------------------------------------------
def setup_logging(verbose: bool = False, log_file=None):
    """
    Initialise the package logger and pick the console level.

    Verbose mode surfaces the recoverable discovery errors
    (busy ports, silent ports) on the console; otherwise they
    only reach the log file.
    """
    logger = _build_logger(log_file)
    level = logging.DEBUG if verbose else logging.INFO
    for handler in logger.handlers:
        if handler.get_name() == "console":
            handler.setLevel(level)
    return logger


def get_logger(module_name: str):
    """
    Returns a logger instance bound to a module.

    Usage:
        from templogger.utils.logging_cfg import get_logger
        log = get_logger(__name__)
        log.info("Hello!")
    """
    if module_name.startswith(LOGGER_NAME + "."):
        module_name = module_name[len(LOGGER_NAME) + 1:]
    return logging.getLogger(LOGGER_NAME).getChild(module_name)
