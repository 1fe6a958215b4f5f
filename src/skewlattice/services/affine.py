"""Minimal 2D affine algebra.

An AffineMap stores the linear part (a, b, c, d) and translation
(tx, ty) of

    x' = a*x + c*y + tx
    y' = b*x + d*y + ty
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from skewlattice.config import SINGULAR_DETERMINANT
from skewlattice.utils.exceptions import SingularMatrixError


class AffineMap(NamedTuple):
    """Six-element affine transform, laid out as [a, b, c, d, tx, ty]."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @classmethod
    def identity(cls) -> AffineMap:
        return cls()

    @property
    def determinant(self) -> float:
        return determinant(self)

    def inverted(self) -> AffineMap:
        return invert(self)

    def with_translation(self, tx: float, ty: float) -> AffineMap:
        return self._replace(tx=tx, ty=ty)

    def apply(self, x, y):
        """Transform a point, or arrays of points, through the map."""
        return (
            self.a * x + self.c * y + self.tx,
            self.b * x + self.d * y + self.ty,
        )

    def as_matrix(self) -> np.ndarray:
        """Homogeneous 3x3 matrix acting on column vectors (x, y, 1)."""
        return np.array(
            [
                [self.a, self.c, self.tx],
                [self.b, self.d, self.ty],
                [0.0, 0.0, 1.0],
            ]
        )


def determinant(m: AffineMap) -> float:
    """Determinant of the 2x2 linear part."""
    return m.a * m.d - m.b * m.c


def invert(m: AffineMap) -> AffineMap:
    """Closed-form inverse such that ``then(m, invert(m))`` is the identity.

    Raises:
        SingularMatrixError: If the linear part is (numerically) singular
    """
    det = determinant(m)
    if abs(det) < SINGULAR_DETERMINANT:
        raise SingularMatrixError(det)

    return AffineMap(
        a=m.d / det,
        b=-m.b / det,
        c=-m.c / det,
        d=m.a / det,
        tx=(m.c * m.ty - m.d * m.tx) / det,
        ty=(m.b * m.tx - m.a * m.ty) / det,
    )


def compose(m: AffineMap, point: tuple[float, float, float]) -> tuple[float, float, float]:
    """Apply ``m`` to the homogeneous point (x, y, w)."""
    x, y, w = point
    return (
        m.a * x + m.c * y + m.tx * w,
        m.b * x + m.d * y + m.ty * w,
        w,
    )


def then(first: AffineMap, second: AffineMap) -> AffineMap:
    """Map equivalent to applying ``first`` and then ``second``."""
    return AffineMap(
        a=second.a * first.a + second.c * first.b,
        b=second.b * first.a + second.d * first.b,
        c=second.a * first.c + second.c * first.d,
        d=second.b * first.c + second.d * first.d,
        tx=second.a * first.tx + second.c * first.ty + second.tx,
        ty=second.b * first.tx + second.d * first.ty + second.ty,
    )
