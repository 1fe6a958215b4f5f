"""Centered FFT modulus spectrum of a DataField.

The forward transform is a pluggable primitive returning real and
imaginary planes; the default uses numpy's FFT on mean-subtracted data
multiplied by an OpenCV Hann window.
"""

import logging
from collections.abc import Callable

import cv2
import numpy as np

from skewlattice.services.data_field import DataField

logger = logging.getLogger(__name__)

# (data, window, subtract_mean) -> (real, imaginary)
FFTPrimitive = Callable[[np.ndarray, str, bool], tuple[np.ndarray, np.ndarray]]


def hann_window(xres: int, yres: int) -> np.ndarray:
    """Separable 2D Hann window of shape (yres, xres).

    A dimension of a single sample keeps weight 1 along that axis.
    """
    if xres > 1 and yres > 1:
        return cv2.createHanningWindow((xres, yres), cv2.CV_64F)
    wx = np.hanning(xres) if xres > 1 else np.ones(1)
    wy = np.hanning(yres) if yres > 1 else np.ones(1)
    return np.outer(wy, wx)


def numpy_fft_2d(
    data: np.ndarray, window: str = "hann", subtract_mean: bool = True
) -> tuple[np.ndarray, np.ndarray]:
    """Unitary forward 2D FFT with optional mean subtraction and windowing."""
    work = np.asarray(data, dtype=np.float64)
    if subtract_mean:
        work = work - work.mean()
    if window == "hann":
        work = work * hann_window(work.shape[1], work.shape[0])
    elif window != "none":
        raise ValueError(f"Unsupported window '{window}'")

    transformed = np.fft.fft2(work, norm="ortho")
    return transformed.real, transformed.imag


def modulus(re: np.ndarray, im: np.ndarray) -> np.ndarray:
    return np.hypot(re, im)


def humanize(data: np.ndarray) -> np.ndarray:
    """Swap quadrants so the zero frequency sits at (yres // 2, xres // 2)."""
    return np.fft.fftshift(data)


def reciprocal_unit(unit: str) -> str:
    """Unit of the reciprocal space, e.g. ``m`` -> ``1/m`` and back."""
    if unit.startswith("1/"):
        return unit[2:]
    return f"1/{unit}" if unit else ""


def build_spectrum(field: DataField, fft: FFTPrimitive = numpy_fft_2d) -> DataField:
    """Humanized FFT modulus of ``field`` in reciprocal-space units.

    Physical extents become ``1 / pixel size`` per axis and the offsets
    put the zero-frequency sample at coordinate (0, 0). The floor is
    shifted to zero.
    """
    re, im = fft(field.data, "hann", True)
    spectrum = humanize(modulus(re, im))
    spectrum -= spectrum.min()

    xreal = 1.0 / field.dx
    yreal = 1.0 / field.dy
    xoffset = -(field.xres / 2.0) * (xreal / field.xres)
    yoffset = -(field.yres / 2.0) * (yreal / field.yres)

    logger.debug(f"Spectrum {field.xres}x{field.yres}, max={spectrum.max():.4g}")

    return DataField(
        spectrum,
        xreal=xreal,
        yreal=yreal,
        xoffset=xoffset,
        yoffset=yoffset,
        xy_unit=reciprocal_unit(field.xy_unit),
        z_unit=field.z_unit,
        title=f"FFT {field.title}".strip(),
    )
