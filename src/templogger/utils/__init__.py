"""
Shared helpers: logging and configuration.
"""

from . import config
from . import logging_cfg

__all__ = ["config", "logging_cfg"]
