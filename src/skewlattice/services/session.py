"""
Lattice skew session state.

The interactive tool keeps four images (raw data, its spectrum, the
corrected data and the corrected spectrum), the current skew angles and
up to four selected lattice peaks. Every operation here takes a
LatticeState and returns a new one; the caller owns storage.

Recomputation order after a skew change:
    SkewModel -> resampled image -> its spectrum -> peak re-refinement
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

import cv2
import numpy as np

from skewlattice.config import (
    DEFAULT_INTERPOLATION,
    DEFAULT_PEAK_RADIUS,
    META_SOURCE_TITLE,
    META_X_SKEW,
    META_Y_SKEW,
    OUTPUT_TITLE,
    PROVENANCE_TAG,
    SKEW_LIMIT_DEGREES,
    ZOOM_LEVELS,
)
from skewlattice.services.data_field import DataField
from skewlattice.services.peaks import (
    AngleResult,
    PeakSet,
    Point2D,
    locate_peak,
    measure_peak_set,
    refine_peak_set,
)
from skewlattice.services.skew_model import (
    SkewModel,
    SkewParameters,
    apply_skew,
    build_skew_model,
)
from skewlattice.services.spectrum import FFTPrimitive, build_spectrum, numpy_fft_2d
from skewlattice.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ImageRole(str, Enum):
    """Which of the four maintained images is displayed."""

    RAW = "raw"
    SPECTRUM = "spectrum"
    CORRECTED = "corrected"
    CORRECTED_SPECTRUM = "corrected_spectrum"


@dataclass(frozen=True)
class LatticeState:
    """Complete, immutable state of one skew-lattice session."""

    original: DataField
    spectrum: DataField
    corrected: DataField
    corrected_spectrum: DataField
    params: SkewParameters
    model: SkewModel
    peaks: PeakSet = field(default_factory=PeakSet.empty)
    role: ImageRole = ImageRole.CORRECTED_SPECTRUM
    zoom: int = 1
    radius: int = DEFAULT_PEAK_RADIUS
    lower: float | None = None
    upper: float | None = None
    interpolation: str = DEFAULT_INTERPOLATION
    fft: FFTPrimitive = field(default=numpy_fft_2d, repr=False)

    def image(self, role: ImageRole | None = None) -> DataField:
        """The maintained image for ``role`` (default: the displayed role)."""
        role = ImageRole(role or self.role)
        return {
            ImageRole.RAW: self.original,
            ImageRole.SPECTRUM: self.spectrum,
            ImageRole.CORRECTED: self.corrected,
            ImageRole.CORRECTED_SPECTRUM: self.corrected_spectrum,
        }[role]

    @property
    def peaks_editable(self) -> bool:
        """Peaks are picked on the spectrum of the corrected image only."""
        return self.role == ImageRole.CORRECTED_SPECTRUM

    @property
    def angles(self) -> AngleResult | None:
        return measure_peak_set(self.peaks)


def start_session(
    image: DataField,
    radius: int = DEFAULT_PEAK_RADIUS,
    interpolation: str = DEFAULT_INTERPOLATION,
    fft: FFTPrimitive = numpy_fft_2d,
) -> LatticeState:
    """Initial state for ``image`` with zero skew and no peaks selected."""
    params = SkewParameters()
    model = build_skew_model(params, image.xres, image.yres)
    corrected = apply_skew(image, params, interpolation, model)
    spectrum = build_spectrum(image, fft)

    return LatticeState(
        original=image,
        spectrum=spectrum,
        corrected=corrected,
        corrected_spectrum=build_spectrum(corrected, fft),
        params=params,
        model=model,
        radius=radius,
        interpolation=interpolation,
        fft=fft,
    )


def set_skew(
    state: LatticeState, xskew: float | None = None, yskew: float | None = None
) -> LatticeState:
    """Recompute the corrected images for new skew angles.

    Angles beyond the slider range are clamped. Stored peaks are
    re-located on the new view.
    """
    requested = SkewParameters(
        state.params.xskew if xskew is None else float(xskew),
        state.params.yskew if yskew is None else float(yskew),
    )
    params = requested.clamped()
    if params != requested:
        logger.warning(
            f"Skew ({requested.xskew}, {requested.yskew}) clamped to ±{SKEW_LIMIT_DEGREES}°"
        )

    model = build_skew_model(params, state.original.xres, state.original.yres)
    corrected = apply_skew(state.original, params, state.interpolation, model)
    new_state = replace(
        state,
        params=params,
        model=model,
        corrected=corrected,
        corrected_spectrum=build_spectrum(corrected, state.fft),
    )
    return refine_peaks(new_state)


def reset_skew(state: LatticeState) -> LatticeState:
    return set_skew(state, 0.0, 0.0)


def set_role(
    state: LatticeState,
    role: ImageRole | str,
    lower: float | None = None,
    upper: float | None = None,
) -> LatticeState:
    """Display another image with its display range; the peak selection is cleared.

    Callers pass the bounds persisted for ``role`` (see
    ``ConfigManager.get_clamp_bounds``); None means the full data range.
    """
    return replace(state, role=ImageRole(role), peaks=PeakSet.empty(), lower=lower, upper=upper)


def set_zoom(state: LatticeState, zoom: int) -> LatticeState:
    if zoom not in ZOOM_LEVELS:
        raise ValidationError("zoom", str(zoom), f"zoom must be one of {ZOOM_LEVELS}")
    return refine_peaks(replace(state, zoom=zoom))


def set_clamp(state: LatticeState, lower: float | None, upper: float | None) -> LatticeState:
    return replace(state, lower=lower, upper=upper)


def set_radius(state: LatticeState, radius: int) -> LatticeState:
    if radius < 1:
        raise ValidationError("radius", str(radius), "radius must be at least 1 pixel")
    return replace(state, radius=int(radius))


def select_peak(state: LatticeState, index: int, point: Point2D) -> LatticeState:
    """Refine ``point`` on the current view and store it in slot ``index``.

    Raises:
        ValidationError: If peaks cannot be edited on the displayed image,
            or the refined point duplicates another slot
    """
    if not state.peaks_editable:
        raise ValidationError(
            "role", state.role.value, "peaks can only be selected on the corrected spectrum"
        )
    refined = locate_peak(display_view(state), point, state.radius)
    return replace(state, peaks=state.peaks.with_point(index, refined))


def clear_peaks(state: LatticeState) -> LatticeState:
    return replace(state, peaks=PeakSet.empty())


def refine_peaks(state: LatticeState) -> LatticeState:
    """Re-locate every stored peak on the current view."""
    if len(state.peaks) == 0:
        return state
    return replace(state, peaks=refine_peak_set(display_view(state), state.peaks, state.radius))


def zoom_view(image: DataField, zoom: int) -> DataField:
    """Centre crop enlarged back to full resolution.

    The crop is ``(res // zoom) | 1`` pixels wide so it has a centre
    pixel; physical extents and offsets shrink by ``zoom``.
    """
    if zoom == 1:
        return image

    width = (image.xres // zoom) | 1
    height = (image.yres // zoom) | 1
    col0 = (image.xres - width) // 2
    row0 = (image.yres - height) // 2
    crop = np.ascontiguousarray(image.data[row0 : row0 + height, col0 : col0 + width])
    enlarged = cv2.resize(crop, (image.xres, image.yres), interpolation=cv2.INTER_LINEAR)

    return image.with_data(
        enlarged.astype(np.float64),
        xreal=image.xreal / zoom,
        yreal=image.yreal / zoom,
        xoffset=image.xoffset / zoom,
        yoffset=image.yoffset / zoom,
    )


def clamp_view(image: DataField, lower: float | None, upper: float | None) -> DataField:
    """Limit samples to the display range; missing bounds use the data range."""
    lo, hi = image.min_max()
    lower = lo if lower is None else lower
    upper = hi if upper is None else upper
    return image.with_data(np.clip(image.data, min(lower, upper), max(lower, upper)))


def display_view(state: LatticeState) -> DataField:
    """The image shown to the operator: current role, zoom and display range."""
    return clamp_view(zoom_view(state.image(), state.zoom), state.lower, state.upper)


@dataclass(frozen=True)
class CorrectionOutput:
    """Final corrected image handed back to the host."""

    field: DataField
    provenance: str = PROVENANCE_TAG

    @property
    def meta(self) -> dict[str, str]:
        return self.field.meta


def create_output(state: LatticeState) -> CorrectionOutput:
    """Corrected image with skew metadata and provenance."""
    params = state.params
    meta = dict(state.original.meta)
    meta[META_SOURCE_TITLE] = state.original.title
    meta[META_X_SKEW] = f"{params.xskew:.5f}"
    meta[META_Y_SKEW] = f"{params.yskew:.5f}"

    output = state.corrected.with_changes(
        title=OUTPUT_TITLE,
        meta=meta,
        xy_unit=state.original.xy_unit,
        z_unit=state.original.z_unit,
    )
    logger.info(
        f"Created skewed output {output.xres}x{output.yres} "
        f"(X={params.xskew:.2f}°, Y={params.yskew:.2f}°)"
    )
    return CorrectionOutput(field=output)
