"""Shear model derived from the horizontal and vertical skew angles.

The two angles drive a single cross-coupled shear matrix

    x' = x + tan(Xskew) * y
    y' = tan(Yskew) * x + y

whose translation is chosen so the sheared image's bounding box starts
at the canvas origin.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from skewlattice.config import DEFAULT_INTERPOLATION, FILL_MARGIN, SKEW_LIMIT_DEGREES
from skewlattice.services.affine import AffineMap, invert
from skewlattice.services.data_field import DataField
from skewlattice.services.interpolation import InterpolationType
from skewlattice.services.resampler import affine_resample
from skewlattice.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class SkewParameters:
    """Skew angles in degrees."""

    xskew: float = 0.0
    yskew: float = 0.0

    def __post_init__(self) -> None:
        for name in ("xskew", "yskew"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValidationError(name, str(value), "skew angle must be a finite number")

    def clamped(self, limit: float = SKEW_LIMIT_DEGREES) -> SkewParameters:
        """Angles limited to [-limit, limit]."""
        return SkewParameters(
            xskew=min(max(self.xskew, -limit), limit),
            yskew=min(max(self.yskew, -limit), limit),
        )

    @property
    def is_identity(self) -> bool:
        return self.xskew == 0.0 and self.yskew == 0.0


@dataclass(frozen=True)
class SkewModel:
    """Geometry of one skew correction.

    Attributes:
        params: Angles the model was built from
        source_res: Original (xres, yres)
        new_res: Corrected canvas (xres, yres)
        bbox: Sheared bounding box (min_x, min_y, max_x, max_y) in pixels
        forward: Source pixel -> canvas pixel map
        inverse: Canvas pixel -> source pixel map
    """

    params: SkewParameters
    source_res: tuple[int, int]
    new_res: tuple[int, int]
    bbox: tuple[float, float, float, float]
    forward: AffineMap
    inverse: AffineMap

    @property
    def xscale(self) -> float:
        return self.new_res[0] / self.source_res[0]

    @property
    def yscale(self) -> float:
        return self.new_res[1] / self.source_res[1]

    def scaled_real(self, xreal: float, yreal: float) -> tuple[float, float]:
        """Physical size of the canvas, keeping the original pixel pitch."""
        return xreal * self.xscale, yreal * self.yscale


def shear_matrix(params: SkewParameters) -> AffineMap:
    """Linear shear for the given angles, without translation."""
    return AffineMap(
        a=1.0,
        b=math.tan(math.radians(params.yskew)),
        c=math.tan(math.radians(params.xskew)),
        d=1.0,
    )


def sheared_bbox(m: AffineMap, xres: int, yres: int) -> tuple[float, float, float, float]:
    """Axis-aligned bounding box of the xres x yres rectangle mapped through ``m``."""
    corners_x = np.array([0.0, xres, xres, 0.0])
    corners_y = np.array([0.0, 0.0, yres, yres])
    tx, ty = m.apply(corners_x, corners_y)
    return float(tx.min()), float(ty.min()), float(tx.max()), float(ty.max())


def build_skew_model(params: SkewParameters, xres: int, yres: int) -> SkewModel:
    """Build the forward and inverse maps and the canvas size for a skew.

    Args:
        params: Skew angles in degrees
        xres: Source width in pixels
        yres: Source height in pixels

    Returns:
        The SkewModel for this geometry
    """
    shear = shear_matrix(params)
    min_x, min_y, max_x, max_y = sheared_bbox(shear, xres, yres)

    new_xres = max(1, _round_half_up(max_x - min_x))
    new_yres = max(1, _round_half_up(max_y - min_y))

    forward = shear.with_translation(-min_x, -min_y)
    inverse = invert(forward)

    logger.debug(
        f"Skew X={params.xskew:.2f}° Y={params.yskew:.2f}°: "
        f"{xres}x{yres} -> {new_xres}x{new_yres}"
    )

    return SkewModel(
        params=params,
        source_res=(xres, yres),
        new_res=(new_xres, new_yres),
        bbox=(min_x, min_y, max_x, max_y),
        forward=forward,
        inverse=inverse,
    )


def background_fill(field: DataField) -> float:
    """Fill value just below the data range, so empty canvas stays distinguishable."""
    lo, hi = field.min_max()
    return lo - FILL_MARGIN * (hi - lo)


def apply_skew(
    source: DataField,
    params: SkewParameters,
    interpolation: "InterpolationType | str" = DEFAULT_INTERPOLATION,
    model: SkewModel | None = None,
) -> DataField:
    """Resample ``source`` through the skew model for ``params``.

    The result has the model's canvas resolution, physical extents scaled
    by the same factor, the source units and the background fill value.
    """
    if model is None:
        model = build_skew_model(params, source.xres, source.yres)

    fill = background_fill(source)
    xreal, yreal = model.scaled_real(source.xreal, source.yreal)

    return affine_resample(
        source,
        model.new_res,
        model.inverse,
        interpolation=interpolation,
        fill_value=fill,
        xreal=xreal,
        yreal=yreal,
    ).with_changes(xoffset=0.0, yoffset=0.0)
