"""Two-dimensional sampled data with physical calibration.

A DataField is the image value passed between pipeline stages. Stages
return new fields instead of mutating their inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

import numpy as np

from skewlattice.utils.exceptions import ValidationError

# Round-off allowance so a pixel edge converts back to the same pixel
_EDGE_TOLERANCE = 1e-9


@dataclass(frozen=True, eq=False)
class DataField:
    """Real-valued grid of ``yres`` rows by ``xres`` columns.

    Attributes:
        data: Samples as a float64 array of shape (yres, xres)
        xreal: Physical width of the whole field
        yreal: Physical height of the whole field
        xoffset: Physical x coordinate of the left edge
        yoffset: Physical y coordinate of the top edge
        xy_unit: Unit of the lateral coordinates
        z_unit: Unit of the sample values
        background: Fill value used where no data exists
        title: Optional human-readable title
        meta: Free-form string metadata carried with the field
    """

    data: np.ndarray
    xreal: float = 1.0
    yreal: float = 1.0
    xoffset: float = 0.0
    yoffset: float = 0.0
    xy_unit: str = "m"
    z_unit: str = "m"
    background: float = 0.0
    title: str = ""
    meta: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        data = np.asarray(self.data, dtype=np.float64)
        if data.ndim != 2 or data.size == 0:
            raise ValidationError("data", str(data.shape), "expected a non-empty 2D array")
        if not (self.xreal > 0 and self.yreal > 0):
            raise ValidationError(
                "real size", f"{self.xreal}x{self.yreal}", "physical extents must be positive"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def new(
        cls,
        xres: int,
        yres: int,
        xreal: float,
        yreal: float,
        fill: float = 0.0,
        **kwargs,
    ) -> DataField:
        """Create a field filled with a constant value."""
        return cls(np.full((yres, xres), fill, dtype=np.float64), xreal, yreal, **kwargs)

    @property
    def xres(self) -> int:
        return self.data.shape[1]

    @property
    def yres(self) -> int:
        return self.data.shape[0]

    @property
    def dx(self) -> float:
        """Physical width of one pixel."""
        return self.xreal / self.xres

    @property
    def dy(self) -> float:
        """Physical height of one pixel."""
        return self.yreal / self.yres

    def rtoj(self, x: float) -> int:
        """Column containing an offset-free physical x coordinate."""
        return int(math.floor(x / self.dx + _EDGE_TOLERANCE))

    def rtoi(self, y: float) -> int:
        """Row containing an offset-free physical y coordinate."""
        return int(math.floor(y / self.dy + _EDGE_TOLERANCE))

    def jtor(self, j: float) -> float:
        return j * self.dx

    def itor(self, i: float) -> float:
        return i * self.dy

    def pixel_to_physical(self, col: int, row: int) -> tuple[float, float]:
        """Physical (offset-inclusive) coordinate of a pixel's corner."""
        return self.jtor(col) + self.xoffset, self.itor(row) + self.yoffset

    def physical_to_pixel(self, x: float, y: float) -> tuple[int, int]:
        """(col, row) of the pixel containing an offset-inclusive physical point."""
        return self.rtoj(x - self.xoffset), self.rtoi(y - self.yoffset)

    def min_max(self) -> tuple[float, float]:
        return float(self.data.min()), float(self.data.max())

    def with_data(self, data: np.ndarray, **changes) -> DataField:
        """Copy of this field carrying new samples and optional attribute changes."""
        return replace(self, data=data, **changes)

    def with_changes(self, **changes) -> DataField:
        return replace(self, **changes)
