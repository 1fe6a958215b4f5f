"""Pytest configuration for skewlattice tests.

Provides small synthetic fields shared across the test modules.
"""

import numpy as np
import pytest

from skewlattice.services.data_field import DataField


def make_square_lattice(res: int = 64, period: int = 16) -> DataField:
    """Two crossed cosines: a square lattice whose spectrum has four first-ring peaks."""
    y, x = np.mgrid[0:res, 0:res].astype(np.float64)
    k = 2.0 * np.pi / period
    data = np.cos(k * x) + np.cos(k * y)
    return DataField(data, xreal=float(res), yreal=float(res), xy_unit="m", title="lattice")


@pytest.fixture
def square_lattice():
    """64x64 square lattice, one unit per pixel, period 16 pixels."""
    return make_square_lattice()


@pytest.fixture
def ramp_field():
    """5 columns x 4 rows with distinct values 0..19."""
    return DataField(np.arange(20, dtype=np.float64).reshape(4, 5), xreal=5.0, yreal=4.0)


@pytest.fixture
def single_peak_field():
    """20x20 zeros with a single 5.0 at pixel (10, 10)."""
    data = np.zeros((20, 20))
    data[10, 10] = 5.0
    return DataField(data, xreal=20.0, yreal=20.0)
