"""Tests for core geometry module.

Tests GridGeometry dataclass, axis neighbor vectors, and the interior helper.
"""

import numpy as np
import pytest
import taichi as ti

from flowfield.core.dtypes import DTYPE
from flowfield.core.geometry import (
    AXIS_DX,
    AXIS_DY,
    NUM_AXIS_NEIGHBORS,
    GridGeometry,
    is_interior,
)


class TestGridGeometry:
    """Tests for GridGeometry dataclass."""

    def test_basic_creation(self):
        grid = GridGeometry(32, 24)
        assert grid.width == 32
        assert grid.height == 24

    def test_immutability(self):
        """GridGeometry is frozen."""
        grid = GridGeometry(10, 10)
        with pytest.raises(Exception):  # FrozenInstanceError
            grid.width = 20

    def test_n_cells(self):
        assert GridGeometry(10, 20).n_cells == 200

    def test_n_interior(self):
        """Interior excludes the one-cell ghost ring."""
        assert GridGeometry(10, 20).n_interior == 8 * 18

    def test_shape_property(self):
        assert GridGeometry(15, 25).shape == (15, 25)

    @pytest.mark.parametrize("width,height", [(2, 10), (10, 2), (0, 0)])
    def test_too_small_rejected(self, width, height):
        """Grids need at least one interior cell."""
        with pytest.raises(ValueError):
            GridGeometry(width, height)

    def test_minimum_grid(self):
        grid = GridGeometry(3, 3)
        assert grid.n_interior == 1

    def test_contains(self):
        grid = GridGeometry(8, 6)
        assert grid.contains(0, 0)
        assert grid.contains(7, 5)
        assert not grid.contains(8, 0)
        assert not grid.contains(0, -1)

    def test_is_ghost(self):
        grid = GridGeometry(8, 6)
        assert grid.is_ghost(0, 3)
        assert grid.is_ghost(7, 3)
        assert grid.is_ghost(3, 0)
        assert grid.is_ghost(3, 5)
        assert not grid.is_ghost(1, 1)
        assert not grid.is_ghost(6, 4)
        assert not grid.is_ghost(8, 3)


class TestAxisNeighbors:
    """Neighbor order is left, right, up, down."""

    def test_count(self):
        assert NUM_AXIS_NEIGHBORS == 4

    def test_offsets(self):
        offsets = [(AXIS_DX[k], AXIS_DY[k]) for k in range(NUM_AXIS_NEIGHBORS)]
        assert offsets == [(-1, 0), (1, 0), (0, -1), (0, 1)]


class TestIsInterior:
    """is_interior evaluated inside a kernel."""

    def test_matches_ghost_ring(self):
        width, height = 7, 5
        out = ti.field(dtype=ti.i32, shape=(width, height))

        @ti.kernel
        def mark():
            for x, y in out:
                out[x, y] = ti.cast(is_interior(x, y, width, height), ti.i32)

        mark()
        result = out.to_numpy()

        expected = np.zeros((width, height), dtype=np.int32)
        expected[1:-1, 1:-1] = 1
        np.testing.assert_array_equal(result, expected)

    def test_dtype_is_f32(self):
        assert DTYPE == ti.f32
