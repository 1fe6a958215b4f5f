"""Tests for the immutable lattice session state."""

import numpy as np
import pytest

from skewlattice.services.data_field import DataField
from skewlattice.services.peaks import Point2D
from skewlattice.services.session import (
    ImageRole,
    clamp_view,
    clear_peaks,
    create_output,
    display_view,
    reset_skew,
    select_peak,
    set_clamp,
    set_radius,
    set_role,
    set_skew,
    set_zoom,
    start_session,
    zoom_view,
)
from skewlattice.services.skew_model import SkewParameters
from skewlattice.utils.config_manager import ConfigManager
from skewlattice.utils.exceptions import ValidationError

# Approximate clicks near the four first-ring peaks of the 64x64 lattice
RING_CLICKS = [(0.06, 0.001), (0.001, 0.06), (-0.06, 0.001), (0.001, -0.06)]


@pytest.fixture
def session(square_lattice):
    return start_session(square_lattice)


@pytest.fixture
def ring_session(session):
    state = session
    for i, (x, y) in enumerate(RING_CLICKS):
        state = select_peak(state, i, Point2D(x, y))
    return state


class TestStartSession:
    def test_initial_state(self, session, square_lattice):
        assert session.params == SkewParameters()
        assert session.role == ImageRole.CORRECTED_SPECTRUM
        assert session.zoom == 1
        assert len(session.peaks) == 0
        assert session.angles is None
        np.testing.assert_array_equal(session.corrected.data, square_lattice.data)

    def test_four_images(self, session, square_lattice):
        assert session.image(ImageRole.RAW) is square_lattice
        assert session.image(ImageRole.SPECTRUM).xy_unit == "1/m"
        assert session.image(ImageRole.CORRECTED).xres == 64
        assert session.image() is session.corrected_spectrum

    def test_injected_transform_used(self, square_lattice):
        calls = []

        def fake_fft(data, window, subtract_mean):
            calls.append(data.shape)
            return data, np.zeros_like(data)

        state = start_session(square_lattice, fft=fake_fft)
        assert calls == [(64, 64), (64, 64)]
        set_skew(state, xskew=10.0)
        assert calls[-1] == (64, 75)


class TestPeakSelection:
    def test_ring_peaks_refined(self, ring_session):
        positions = [(p.x, p.y) for p in ring_session.peaks]
        assert positions == [(0.0625, 0.0), (0.0, 0.0625), (-0.0625, 0.0), (0.0, -0.0625)]

    def test_square_lattice_angles(self, ring_session):
        angles = ring_session.angles
        assert angles.angle123 == pytest.approx(90.0, abs=1e-9)
        assert angles.angle234 == pytest.approx(90.0, abs=1e-9)

    def test_selection_does_not_mutate(self, session):
        state = select_peak(session, 0, Point2D(0.06, 0.001))
        assert len(session.peaks) == 0
        assert len(state.peaks) == 1

    def test_duplicate_click_rejected(self, session):
        state = select_peak(session, 0, Point2D(0.06, 0.001))
        with pytest.raises(ValidationError):
            select_peak(state, 1, Point2D(0.064, 0.003))

    def test_only_on_corrected_spectrum(self, session):
        state = set_role(session, ImageRole.RAW)
        assert not state.peaks_editable
        with pytest.raises(ValidationError, match="corrected spectrum"):
            select_peak(state, 0, Point2D(1.0, 1.0))

    def test_role_change_clears_peaks(self, ring_session):
        state = set_role(ring_session, "spectrum")
        assert state.role == ImageRole.SPECTRUM
        assert len(state.peaks) == 0

    def test_clear_peaks(self, ring_session):
        assert len(clear_peaks(ring_session).peaks) == 0

    def test_radius(self, session):
        assert set_radius(session, 5).radius == 5
        with pytest.raises(ValidationError):
            set_radius(session, 0)


class TestSetSkew:
    def test_non_finite_angle_rejected(self, session):
        with pytest.raises(ValidationError):
            set_skew(session, xskew=float("nan"))
        assert session.params.is_identity

    def test_recomputes_corrected(self, session):
        state = set_skew(session, xskew=10.0)
        assert state.params == SkewParameters(10.0, 0.0)
        assert state.corrected.xres == 75
        assert state.corrected_spectrum.xres == 75
        assert session.corrected.xres == 64

    def test_keeps_other_angle(self, session):
        state = set_skew(set_skew(session, yskew=4.0), xskew=-3.0)
        assert state.params == SkewParameters(-3.0, 4.0)

    def test_clamped_to_range(self, session):
        state = set_skew(session, 45.0, -40.0)
        assert state.params == SkewParameters(30.0, -30.0)

    def test_peaks_follow_skew(self, ring_session):
        state = set_skew(ring_session, xskew=6.0)
        assert len(state.peaks) == 4
        assert state.angles is not None

    def test_reset(self, session):
        state = reset_skew(set_skew(session, 12.0, -8.0))
        assert state.params.is_identity
        assert state.corrected.xres == 64
        assert state.corrected.yres == 64

    def test_original_never_changes(self, session, square_lattice):
        before = square_lattice.data.copy()
        set_skew(session, 20.0, 20.0)
        np.testing.assert_array_equal(session.original.data, before)


class TestDisplayView:
    def test_zoom_view_crops_centre(self, square_lattice):
        spectrum = start_session(square_lattice).spectrum
        zoomed = zoom_view(spectrum, 2)
        assert (zoomed.xres, zoomed.yres) == (64, 64)
        assert zoomed.xreal == pytest.approx(spectrum.xreal / 2)
        assert zoomed.xoffset == pytest.approx(spectrum.xoffset / 2)

    def test_zoom_one_is_identity(self, ramp_field):
        assert zoom_view(ramp_field, 1) is ramp_field

    def test_set_zoom(self, ring_session):
        state = set_zoom(ring_session, 2)
        assert state.zoom == 2
        assert len(state.peaks) == 4
        assert display_view(state).xreal == pytest.approx(0.5)

    def test_invalid_zoom(self, session):
        with pytest.raises(ValidationError):
            set_zoom(session, 3)

    def test_clamp_view(self, ramp_field):
        clamped = clamp_view(ramp_field, 5.0, 10.0)
        assert clamped.data.min() == 5.0
        assert clamped.data.max() == 10.0
        assert ramp_field.data.max() == 19.0

    def test_clamp_defaults_to_full_range(self, ramp_field):
        np.testing.assert_array_equal(clamp_view(ramp_field, None, None).data, ramp_field.data)

    def test_stored_bounds_steer_refinement(self, session, tmp_path):
        config = ConfigManager(config_path=str(tmp_path / "settings.json"))
        config.set_clamp_bounds(ImageRole.CORRECTED_SPECTRUM, 0.0, 1e-9)
        bounds = config.get_clamp_bounds(ImageRole.CORRECTED_SPECTRUM)
        state = set_role(session, ImageRole.CORRECTED_SPECTRUM, *bounds)
        assert display_view(state).data.max() == 1e-9
        # The clipped plateau keeps the clicked pixel instead of the ring peak
        peak = select_peak(state, 0, Point2D(0.06, 0.001)).peaks.slots[0]
        assert (peak.x, peak.y) == (0.046875, 0.0)
        unclamped = select_peak(session, 0, Point2D(0.06, 0.001)).peaks.slots[0]
        assert (unclamped.x, unclamped.y) == (0.0625, 0.0)

    def test_clamp_changes_view_only(self, session):
        state = set_clamp(session, 0.0, 1e-6)
        assert display_view(state).data.max() == pytest.approx(1e-6)
        assert state.corrected_spectrum.data.max() > 1e-6


class TestCreateOutput:
    def test_metadata(self, session):
        state = set_skew(session, 5.0, -2.5)
        output = create_output(state)
        assert output.field.title == "Skewed"
        assert output.provenance == "proc::skew_lattice"
        assert output.meta["Source Title"] == "lattice"
        assert output.meta["X Skew (°)"] == "5.00000"
        assert output.meta["Y Skew (°)"] == "-2.50000"

    def test_output_is_corrected_image(self, session):
        state = set_skew(session, xskew=7.0)
        output = create_output(state)
        np.testing.assert_array_equal(output.field.data, state.corrected.data)
        assert output.field.xy_unit == "m"

    def test_keeps_source_metadata(self):
        field = DataField(np.ones((8, 8)), title="scan", meta={"Operator": "lab"})
        output = create_output(start_session(field))
        assert output.meta["Operator"] == "lab"
        assert output.meta["X Skew (°)"] == "0.00000"
