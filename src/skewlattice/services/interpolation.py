"""Separable interpolation kernels used by the affine resampler.

Each kernel evaluates a value from a ``support x support`` neighbourhood
and the fractional position inside it. Kernels whose basis does not
interpolate at integer positions (B-spline) need their coefficients
resolved over the whole grid first.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import numpy as np
from scipy import ndimage

from skewlattice.utils.exceptions import UnknownInterpolationError

logger = logging.getLogger(__name__)


class InterpolationType(str, Enum):
    ROUND = "round"
    LINEAR = "linear"
    KEY = "key"
    SCHAUM = "schaum"
    BSPLINE = "bspline"


def _round_weights(t: np.ndarray) -> np.ndarray:
    upper = (t >= 0.5).astype(np.float64)
    return np.stack([1.0 - upper, upper], axis=-1)


def _linear_weights(t: np.ndarray) -> np.ndarray:
    return np.stack([1.0 - t, t], axis=-1)


def _key_weights(t: np.ndarray) -> np.ndarray:
    # Keys cubic convolution, a = -1/2
    return np.stack(
        [
            (-0.5 + (1.0 - t / 2.0) * t) * t,
            1.0 + (-2.5 + 1.5 * t) * t * t,
            (0.5 + (2.0 - 1.5 * t) * t) * t,
            (-0.5 + t / 2.0) * t * t,
        ],
        axis=-1,
    )


def _schaum_weights(t: np.ndarray) -> np.ndarray:
    # Cubic Lagrange polynomials through -1, 0, 1, 2
    return np.stack(
        [
            -t * (t - 1.0) * (t - 2.0) / 6.0,
            (t * t - 1.0) * (t - 2.0) / 2.0,
            -t * (t + 1.0) * (t - 2.0) / 2.0,
            t * (t * t - 1.0) / 6.0,
        ],
        axis=-1,
    )


def _bspline_weights(t: np.ndarray) -> np.ndarray:
    s = 1.0 - t
    return np.stack(
        [
            s * s * s / 6.0,
            (4.0 - 6.0 * t * t + 3.0 * t * t * t) / 6.0,
            (1.0 + 3.0 * t + 3.0 * t * t - 3.0 * t * t * t) / 6.0,
            t * t * t / 6.0,
        ],
        axis=-1,
    )


@dataclass(frozen=True)
class InterpolationKernel:
    """A separable interpolation kernel.

    Attributes:
        kind: Kernel identifier
        support: Number of samples per axis the kernel reads
        interpolating: Whether the basis passes through the samples
        weights: Maps fractional offsets of shape (...) to weights (..., support)
    """

    kind: InterpolationType
    support: int
    interpolating: bool
    weights: Callable[[np.ndarray], np.ndarray]

    def support_size(self) -> int:
        return self.support

    def has_interpolating_basis(self) -> bool:
        return self.interpolating

    @property
    def support_start(self) -> int:
        """Offset of the first neighbourhood sample relative to floor(x)."""
        return -((self.support - 1) // 2)

    def resolve_coefficients_2d(self, grid: np.ndarray) -> np.ndarray:
        """Return the coefficient grid the kernel must be evaluated on.

        Interpolating kernels use the samples as they are. The B-spline
        prefilter runs periodically over the grid mirrored to twice its
        size, which is the period 2R fold the resampler applies to its
        neighbourhood indices.
        """
        if self.interpolating:
            return grid
        logger.debug(f"Resolving {self.kind.value} coefficients over {grid.shape} grid")
        rows, cols = grid.shape
        mirrored = np.pad(
            np.asarray(grid, dtype=np.float64), ((0, rows), (0, cols)), mode="symmetric"
        )
        coefficients = ndimage.spline_filter(
            mirrored, order=3, output=np.float64, mode="grid-wrap"
        )
        return coefficients[:rows, :cols]

    def interpolate_2d(
        self, frac_x: np.ndarray, frac_y: np.ndarray, neighbourhood: np.ndarray
    ) -> np.ndarray:
        """Evaluate the kernel.

        Args:
            frac_x: Fractional x offsets in [0, 1), shape (...)
            frac_y: Fractional y offsets in [0, 1), shape (...)
            neighbourhood: Coefficients of shape (..., support, support),
                indexed [row, column]

        Returns:
            Interpolated values of shape (...)
        """
        wx = self.weights(np.asarray(frac_x, dtype=np.float64))
        wy = self.weights(np.asarray(frac_y, dtype=np.float64))
        return np.einsum("...i,...ij,...j->...", wy, neighbourhood, wx)


_KERNELS: dict[InterpolationType, InterpolationKernel] = {
    InterpolationType.ROUND: InterpolationKernel(InterpolationType.ROUND, 2, True, _round_weights),
    InterpolationType.LINEAR: InterpolationKernel(
        InterpolationType.LINEAR, 2, True, _linear_weights
    ),
    InterpolationType.KEY: InterpolationKernel(InterpolationType.KEY, 4, True, _key_weights),
    InterpolationType.SCHAUM: InterpolationKernel(
        InterpolationType.SCHAUM, 4, True, _schaum_weights
    ),
    InterpolationType.BSPLINE: InterpolationKernel(
        InterpolationType.BSPLINE, 4, False, _bspline_weights
    ),
}


def available_kernels() -> list[str]:
    return [kind.value for kind in InterpolationType]


def get_kernel(kind: "InterpolationType | str") -> InterpolationKernel:
    """Look up a kernel by enum member or name.

    Raises:
        UnknownInterpolationError: If the name is not a known kernel
    """
    try:
        key = InterpolationType(kind.lower() if isinstance(kind, str) else kind)
    except ValueError:
        raise UnknownInterpolationError(str(kind), available_kernels()) from None
    return _KERNELS[key]
