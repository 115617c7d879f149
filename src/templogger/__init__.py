"""
Top-level package for the temperature data logger.

Provides convenient access to the acquisition and utils subpackages.
"""

from . import acquisition
from . import utils

__version__ = "1.0.0"

__all__ = ["acquisition", "utils", "__version__"]
