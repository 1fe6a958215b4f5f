"""
SkewLattice - Utils Package

Utility modules for the package.
"""

from skewlattice.utils.config_manager import ConfigManager, get_config_manager
from skewlattice.utils.i18n import _
from skewlattice.utils.logger import logger

__all__ = [
    "logger",
    "_",
    "ConfigManager",
    "get_config_manager",
]
