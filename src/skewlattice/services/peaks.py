"""Lattice peak refinement and inter-peak angles.

Peaks are stored in physical (offset-inclusive) coordinates. Refinement
returns a new point; callers decide whether to store it.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from skewlattice.config import MAX_PEAKS
from skewlattice.services.data_field import DataField
from skewlattice.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point2D:
    """Physical position with an optional sample value."""

    x: float
    y: float
    value: float | None = None


@dataclass(frozen=True)
class PeakSet:
    """Up to four peaks, each in the slot it was selected into."""

    slots: tuple[Point2D | None, ...] = (None,) * MAX_PEAKS

    def __post_init__(self) -> None:
        if len(self.slots) != MAX_PEAKS:
            raise ValidationError("slots", str(len(self.slots)), f"expected {MAX_PEAKS} slots")

    def __iter__(self) -> Iterator[Point2D]:
        return (p for p in self.slots if p is not None)

    def __len__(self) -> int:
        return sum(1 for p in self.slots if p is not None)

    @property
    def is_complete(self) -> bool:
        return len(self) == MAX_PEAKS

    def with_point(self, index: int, point: Point2D) -> PeakSet:
        """Store ``point`` in slot ``index``.

        Raises:
            ValidationError: If the index is out of range or another slot
                already holds the same position
        """
        if not 0 <= index < MAX_PEAKS:
            raise ValidationError("index", str(index), f"peak index must be 0..{MAX_PEAKS - 1}")
        for i, other in enumerate(self.slots):
            if i != index and other is not None and (other.x, other.y) == (point.x, point.y):
                raise ValidationError(
                    "point", f"({point.x:.6g}, {point.y:.6g})", f"already selected as peak {i + 1}"
                )
        slots = list(self.slots)
        slots[index] = point
        return PeakSet(tuple(slots))

    def without_point(self, index: int) -> PeakSet:
        slots = list(self.slots)
        slots[index] = None
        return PeakSet(tuple(slots))

    @classmethod
    def empty(cls) -> PeakSet:
        return cls()


def locate_peak(spectrum: DataField, approx: Point2D, radius: int) -> Point2D:
    """Find the largest sample within ``radius`` pixels of ``approx``.

    The window is clamped to the grid and scanned row by row; the pixel
    under ``approx`` seeds the running maximum and only a strictly larger
    sample replaces it.

    Args:
        spectrum: Field to search
        approx: Approximate physical position
        radius: Half-width of the square search window in pixels

    Returns:
        Physical position of the maximum pixel with its value
    """
    col, row = spectrum.physical_to_pixel(approx.x, approx.y)
    col = min(max(col, 0), spectrum.xres - 1)
    row = min(max(row, 0), spectrum.yres - 1)
    radius = max(int(radius), 0)

    row_lo, row_hi = max(row - radius, 0), min(row + radius, spectrum.yres - 1)
    col_lo, col_hi = max(col - radius, 0), min(col + radius, spectrum.xres - 1)
    window = spectrum.data[row_lo : row_hi + 1, col_lo : col_hi + 1]

    best_row, best_col = row, col
    best = spectrum.data[row, col]
    # argmax returns the first maximum in row-major order
    flat = int(np.argmax(window))
    if window.flat[flat] > best:
        best_row, best_col = np.unravel_index(flat, window.shape)
        best_row += row_lo
        best_col += col_lo
        best = window.flat[flat]

    x, y = spectrum.pixel_to_physical(int(best_col), int(best_row))
    if (best_col, best_row) != (col, row):
        logger.debug(f"Peak moved from pixel ({col}, {row}) to ({best_col}, {best_row})")
    return Point2D(x, y, float(best))


def refine_peak_set(spectrum: DataField, peaks: PeakSet, radius: int) -> PeakSet:
    """Re-locate every stored peak on ``spectrum``, keeping slot positions."""
    return PeakSet(
        tuple(None if p is None else locate_peak(spectrum, p, radius) for p in peaks.slots)
    )


@dataclass(frozen=True)
class AngleResult:
    """Interior angles in degrees; NaN marks an unavailable angle."""

    angle123: float
    angle234: float

    @staticmethod
    def _label(name: str, value: float) -> str:
        if math.isnan(value):
            return f"Angle {name}:"
        return f"Angle {name}: {value:0.1f}°"

    def format(self) -> tuple[str, str]:
        return self._label("123", self.angle123), self._label("234", self.angle234)


def vector_angle(ax: float, ay: float, bx: float, by: float) -> float:
    """Angle between two vectors in degrees, NaN if either has zero length."""
    norm = math.hypot(ax, ay) * math.hypot(bx, by)
    if norm == 0.0:
        return math.nan
    cosine = (ax * bx + ay * by) / norm
    return math.degrees(math.acos(min(max(cosine, -1.0), 1.0)))


def measure_angles(p1: Point2D, p2: Point2D, p3: Point2D, p4: Point2D) -> AngleResult:
    """Angles at p2 (between p1 and p3) and at p3 (between p4 and p2)."""
    angle123 = vector_angle(p1.x - p2.x, p1.y - p2.y, p3.x - p2.x, p3.y - p2.y)
    angle234 = vector_angle(p4.x - p3.x, p4.y - p3.y, p2.x - p3.x, p2.y - p3.y)
    if math.isnan(angle123) or math.isnan(angle234):
        logger.warning("Coincident peaks, angle unavailable")
    return AngleResult(angle123, angle234)


def measure_peak_set(peaks: PeakSet) -> AngleResult | None:
    """Angles for a complete peak set, None while fewer than four are selected."""
    if not peaks.is_complete:
        return None
    return measure_angles(*peaks.slots)
