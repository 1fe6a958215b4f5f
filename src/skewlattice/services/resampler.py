"""Affine resampling of a DataField onto a new grid.

Every destination pixel is mapped through the inverse transform into
source space and reconstructed with a separable interpolation kernel.
Neighbourhood indices outside the source grid are folded back with a
periodic mirror extension; destination pixels whose source position
lies outside the grid receive the fill value.
"""

import logging

import numpy as np

from skewlattice.config import SINGULAR_DETERMINANT
from skewlattice.services.affine import AffineMap, determinant
from skewlattice.services.data_field import DataField
from skewlattice.services.interpolation import InterpolationKernel, InterpolationType, get_kernel
from skewlattice.utils.exceptions import SingularMatrixError, ValidationError

logger = logging.getLogger(__name__)


def fold_index(k: np.ndarray, res: int) -> np.ndarray:
    """Fold arbitrary integer indices into [0, res).

    Indices are wrapped with period ``2 * res`` and the upper half of each
    period is mirrored, so -1 maps to 0 and ``res`` maps to ``res - 1``.
    """
    k = np.mod(k, 2 * res)
    return np.where(k >= res, 2 * res - 1 - k, k)


def pixel_centre_map(inverse: AffineMap) -> AffineMap:
    """Shift an index-space inverse map so pixel centres line up.

    Destination centre (i + 1/2, j + 1/2) must land on source centre
    (x + 1/2, y + 1/2), which adds 0.5*(a + c - 1) and 0.5*(b + d - 1)
    to the translation.
    """
    return inverse.with_translation(
        inverse.tx + 0.5 * (inverse.a + inverse.c - 1.0),
        inverse.ty + 0.5 * (inverse.b + inverse.d - 1.0),
    )


def sample_source_positions(
    dest_res: tuple[int, int], inverse: AffineMap
) -> tuple[np.ndarray, np.ndarray]:
    """Source-space (x, y) for every destination pixel, arrays of shape (H, W)."""
    xres, yres = dest_res
    rows, cols = np.mgrid[0:yres, 0:xres].astype(np.float64)
    return pixel_centre_map(inverse).apply(cols, rows)


def resample_grid(
    coefficients: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    kernel: InterpolationKernel,
    fill_value: float,
) -> np.ndarray:
    """Evaluate ``kernel`` on a coefficient grid at the given source positions.

    Args:
        coefficients: Resolved coefficient grid (yres, xres)
        x: Source x positions, any shape
        y: Source y positions, same shape as ``x``
        kernel: Interpolation kernel
        fill_value: Value for positions outside [0, xres) x [0, yres)

    Returns:
        Array of the same shape as ``x``
    """
    yres, xres = coefficients.shape
    out = np.full(x.shape, fill_value, dtype=np.float64)

    inside = (x >= 0.0) & (x < xres) & (y >= 0.0) & (y < yres)
    if not inside.any():
        return out

    xs = x[inside]
    ys = y[inside]
    col = np.floor(xs).astype(np.intp)
    row = np.floor(ys).astype(np.intp)
    frac_x = xs - col
    frac_y = ys - row

    offsets = np.arange(kernel.support) + kernel.support_start
    rows = fold_index(row[:, None] + offsets[None, :], yres)
    cols = fold_index(col[:, None] + offsets[None, :], xres)
    neighbourhood = coefficients[rows[:, :, None], cols[:, None, :]]

    out[inside] = kernel.interpolate_2d(frac_x, frac_y, neighbourhood)
    return out


def affine_resample(
    source: DataField,
    dest_res: tuple[int, int],
    inverse: AffineMap,
    interpolation: "InterpolationType | str" = InterpolationType.LINEAR,
    fill_value: float = 0.0,
    xreal: float | None = None,
    yreal: float | None = None,
) -> DataField:
    """Resample ``source`` onto a ``dest_res`` grid through an inverse affine map.

    Args:
        source: Field to read from (not modified)
        dest_res: Destination (xres, yres)
        inverse: Map from destination pixel indices to source pixel indices
        interpolation: Kernel identifier
        fill_value: Value for destination pixels mapping outside the source
        xreal: Physical width of the result (defaults to the source pitch)
        yreal: Physical height of the result (defaults to the source pitch)

    Returns:
        New DataField of resolution ``dest_res``

    Raises:
        SingularMatrixError: If ``inverse`` is not invertible
        ValidationError: If ``dest_res`` is not positive
    """
    xres, yres = dest_res
    if xres < 1 or yres < 1:
        raise ValidationError("dest_res", f"{xres}x{yres}", "resolution must be positive")

    det = determinant(inverse)
    if abs(det) < SINGULAR_DETERMINANT:
        raise SingularMatrixError(det)

    kernel = get_kernel(interpolation)
    coefficients = kernel.resolve_coefficients_2d(source.data)

    x, y = sample_source_positions(dest_res, inverse)
    data = resample_grid(coefficients, x, y, kernel, fill_value)

    logger.debug(
        f"Resampled {source.xres}x{source.yres} -> {xres}x{yres} "
        f"({kernel.kind.value}, fill={fill_value:.4g})"
    )

    return source.with_data(
        data,
        xreal=xreal if xreal is not None else source.dx * xres,
        yreal=yreal if yreal is not None else source.dy * yres,
        background=fill_value,
    )
