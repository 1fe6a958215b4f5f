"""
SkewLattice - Services Package

Numerical engine: affine algebra, skew model, resampler, spectrum,
peak location and the immutable session state built on top of them.
"""

from skewlattice.services.affine import AffineMap, compose, determinant, invert
from skewlattice.services.data_field import DataField
from skewlattice.services.interpolation import InterpolationType, get_kernel
from skewlattice.services.peaks import (
    AngleResult,
    PeakSet,
    Point2D,
    locate_peak,
    measure_angles,
)
from skewlattice.services.resampler import affine_resample, fold_index
from skewlattice.services.skew_model import SkewModel, SkewParameters, build_skew_model
from skewlattice.services.spectrum import build_spectrum

__all__ = [
    "AffineMap",
    "AngleResult",
    "DataField",
    "InterpolationType",
    "PeakSet",
    "Point2D",
    "SkewModel",
    "SkewParameters",
    "affine_resample",
    "build_skew_model",
    "build_spectrum",
    "compose",
    "determinant",
    "fold_index",
    "get_kernel",
    "invert",
    "locate_peak",
    "measure_angles",
]
