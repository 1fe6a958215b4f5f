"""Tests for the interpolation kernels."""

import numpy as np
import pytest

from skewlattice.services.interpolation import (
    InterpolationType,
    available_kernels,
    get_kernel,
)
from skewlattice.services.resampler import fold_index
from skewlattice.utils.exceptions import UnknownInterpolationError


class TestKernelLookup:
    def test_by_name(self):
        assert get_kernel("linear").kind is InterpolationType.LINEAR

    def test_by_enum(self):
        assert get_kernel(InterpolationType.KEY).support_size() == 4

    def test_case_insensitive(self):
        assert get_kernel("BSpline").kind is InterpolationType.BSPLINE

    def test_unknown_raises(self):
        with pytest.raises(UnknownInterpolationError, match="Available"):
            get_kernel("lanczos")

    def test_available_lists_all(self):
        assert set(available_kernels()) == {"round", "linear", "key", "schaum", "bspline"}


class TestKernelProperties:
    @pytest.mark.parametrize(
        "name,support,interpolating",
        [
            ("round", 2, True),
            ("linear", 2, True),
            ("key", 4, True),
            ("schaum", 4, True),
            ("bspline", 4, False),
        ],
    )
    def test_support_and_basis(self, name, support, interpolating):
        kernel = get_kernel(name)
        assert kernel.support_size() == support
        assert kernel.has_interpolating_basis() is interpolating

    def test_support_start(self):
        assert get_kernel("linear").support_start == 0
        assert get_kernel("key").support_start == -1

    @pytest.mark.parametrize("name", available_kernels())
    def test_weights_sum_to_one(self, name):
        t = np.linspace(0.0, 0.99, 12)
        weights = get_kernel(name).weights(t)
        np.testing.assert_allclose(weights.sum(axis=-1), 1.0, atol=1e-12)

    @pytest.mark.parametrize("name", ["round", "linear", "key", "schaum"])
    def test_interpolating_weights_at_zero(self, name):
        kernel = get_kernel(name)
        weights = kernel.weights(np.array(0.0))
        expected = np.zeros(kernel.support)
        expected[-kernel.support_start] = 1.0
        np.testing.assert_array_equal(weights, expected)


class TestInterpolate2D:
    def test_linear_midpoint(self):
        kernel = get_kernel("linear")
        neighbourhood = np.array([[0.0, 2.0], [4.0, 6.0]])
        assert kernel.interpolate_2d(0.5, 0.5, neighbourhood) == pytest.approx(3.0)

    def test_linear_along_x(self):
        kernel = get_kernel("linear")
        neighbourhood = np.array([[0.0, 10.0], [100.0, 110.0]])
        assert kernel.interpolate_2d(0.25, 0.0, neighbourhood) == pytest.approx(2.5)

    def test_round_picks_nearest(self):
        kernel = get_kernel("round")
        neighbourhood = np.array([[1.0, 2.0], [3.0, 4.0]])
        assert kernel.interpolate_2d(0.7, 0.2, neighbourhood) == 2.0

    def test_vectorised(self):
        kernel = get_kernel("linear")
        neighbourhood = np.array([[[0.0, 1.0], [0.0, 1.0]], [[5.0, 5.0], [7.0, 7.0]]])
        result = kernel.interpolate_2d(np.array([0.5, 0.0]), np.array([0.0, 0.5]), neighbourhood)
        np.testing.assert_allclose(result, [0.5, 6.0])

    def test_cubic_reproduces_linear_ramp(self):
        kernel = get_kernel("key")
        ramp = np.tile(np.arange(4.0), (4, 1))
        # samples at -1, 0, 1, 2 -> value at 0.3 along x is 1.3
        assert kernel.interpolate_2d(0.3, 0.6, ramp) == pytest.approx(1.3)


class TestCoefficients:
    def test_interpolating_returns_grid(self):
        grid = np.arange(12.0).reshape(3, 4)
        assert get_kernel("linear").resolve_coefficients_2d(grid) is grid

    def test_bspline_prefilter_changes_grid(self):
        rng = np.random.default_rng(0)
        grid = rng.normal(size=(8, 8))
        coefficients = get_kernel("bspline").resolve_coefficients_2d(grid)
        assert coefficients.shape == grid.shape
        assert not np.allclose(coefficients, grid)

    def test_bspline_constant_is_unchanged(self):
        grid = np.full((6, 5), 3.0)
        coefficients = get_kernel("bspline").resolve_coefficients_2d(grid)
        np.testing.assert_allclose(coefficients, grid, atol=1e-9)

    @pytest.mark.parametrize("shape", [(4, 5), (3, 7), (2, 9)])
    def test_bspline_reconstructs_short_grids(self, shape):
        grid = np.random.default_rng(1).normal(size=shape)
        coefficients = get_kernel("bspline").resolve_coefficients_2d(grid)
        rows, cols = shape
        # Samples at integer positions from the folded 3x3 neighbourhood
        r = fold_index(np.arange(-1, rows + 1), rows)
        c = fold_index(np.arange(-1, cols + 1), cols)
        padded = coefficients[np.ix_(r, c)]
        taps = np.array([1.0, 4.0, 1.0]) / 6.0
        smoothed = sum(taps[i] * padded[i : i + rows, :] for i in range(3))
        rebuilt = sum(taps[j] * smoothed[:, j : j + cols] for j in range(3))
        np.testing.assert_allclose(rebuilt, grid, atol=1e-10)
