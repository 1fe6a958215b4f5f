#!/usr/bin/env python3
"""
SkewLattice - Configuration Module

This module contains all configuration constants and paths used by the package.
"""

import logging
import os
from typing import Final

# ============================================================================
# Application Constants
# ============================================================================

APP_NAME: Final[str] = "Skew Lattice"
APP_VERSION: Final[str] = "1.0.0"
APP_DESCRIPTION: Final[str] = (
    "Correct lateral drift in SPM images by regularizing the lattice seen in the FFT"
)


# ============================================================================
# Skew Correction Constants
# ============================================================================

# Each skew angle is limited to this many degrees either side of zero
SKEW_LIMIT_DEGREES: Final[float] = 30.0

# Background fill sits this fraction of the data range below the minimum
FILL_MARGIN: Final[float] = 0.05

# Interpolation used when resampling the corrected image
DEFAULT_INTERPOLATION: Final[str] = "linear"

# Determinants smaller than this are treated as singular
SINGULAR_DETERMINANT: Final[float] = 1e-12


# ============================================================================
# Peak Selection Constants
# ============================================================================

MAX_PEAKS: Final[int] = 4

# Half-width (pixels) of the local maximum search window
DEFAULT_PEAK_RADIUS: Final[int] = 3

ZOOM_LEVELS: Final[tuple[int, ...]] = (1, 2)


# ============================================================================
# Output Metadata
# ============================================================================

OUTPUT_TITLE: Final[str] = "Skewed"
PROVENANCE_TAG: Final[str] = "proc::skew_lattice"
META_SOURCE_TITLE: Final[str] = "Source Title"
META_X_SKEW: Final[str] = "X Skew (°)"
META_Y_SKEW: Final[str] = "Y Skew (°)"


# ============================================================================
# Configuration Directory
# ============================================================================

CONFIG_DIR: Final[str] = os.path.expanduser("~/.config/skewlattice")
CONFIG_FILE_PATH: Final[str] = os.path.join(CONFIG_DIR, "settings.json")


# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: int = logging.INFO
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME: Final[str] = "SkewLattice"
