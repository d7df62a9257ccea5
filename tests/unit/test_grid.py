"""Unit tests for grid geometry and AffineGrid."""

from __future__ import annotations

import warnings

import numpy as np
import pytest
from affine import Affine
from numpy.testing import assert_allclose, assert_array_equal

from pytopogrid.core.exceptions import GridError
from pytopogrid.core.grid import OUTSIDE, AffineGrid, Extent, GridGeometry


# =============================================================================
# GridGeometry
# =============================================================================


class TestGridGeometry:
    """Tests for GridGeometry construction and properties."""

    def test_from_origin_north_up(self) -> None:
        geom = GridGeometry.from_origin(100.0, 500.0, 10.0, (5, 5))

        assert geom.shape == (5, 5)
        assert geom.transform == Affine(10.0, 0.0, 100.0, 0.0, -10.0, 500.0)
        assert geom.cell_size == 10.0
        assert geom.size == 25

    def test_from_origin_south_up(self) -> None:
        geom = GridGeometry.from_origin(0.0, 0.0, 2.0, (3, 3), north_up=False)

        assert geom.subscript_to_coordinate(2, 1) == (2.0, 4.0)

    def test_invalid_cell_size(self) -> None:
        with pytest.raises(GridError, match="cell_size"):
            GridGeometry.from_origin(0.0, 0.0, 0.0, (3, 3))

    def test_invalid_shape(self) -> None:
        with pytest.raises(GridError):
            GridGeometry(shape=(3, 3, 3))

    def test_degenerate_transform(self) -> None:
        with pytest.raises(GridError, match="degenerate"):
            GridGeometry(shape=(2, 2), transform=Affine(0.0, 0.0, 0.0, 0.0, 0.0, 0.0))

    def test_bounds_and_extent(self) -> None:
        geom = GridGeometry.from_origin(100.0, 500.0, 10.0, (5, 5))

        assert geom.bounds == (95.0, 455.0, 145.0, 505.0)
        assert geom.extent == Extent(100.0, 140.0, 460.0, 500.0)
        assert geom.edge_extent == Extent(95.0, 145.0, 455.0, 505.0)

    def test_edge_transform_is_half_cell_offset(self) -> None:
        geom = GridGeometry.from_origin(100.0, 500.0, 10.0, (5, 5))

        assert geom.edge_transform.c == pytest.approx(95.0)
        assert geom.edge_transform.f == pytest.approx(505.0)

    def test_coordinates_vectors(self, small_geometry: GridGeometry) -> None:
        x, y = small_geometry.coordinates()

        assert_allclose(x, np.arange(0.0, 100.0, 10.0))
        assert_allclose(y, np.arange(90.0, -10.0, -10.0))


class TestIndexConversions:
    """Tests for subscript, linear position and coordinate conversions."""

    def test_linear_to_subscript(self) -> None:
        geom = GridGeometry.from_origin(0.0, 0.0, 1.0, (5, 5))

        assert geom.linear_to_subscript(7) == (1, 2)
        assert geom.subscript_to_linear(1, 2) == 7

    def test_linear_is_row_major(self) -> None:
        geom = GridGeometry.from_origin(0.0, 0.0, 1.0, (3, 4))
        values = np.arange(12).reshape(3, 4)

        rows, cols = geom.linear_to_subscript(np.arange(12))
        assert_array_equal(values[rows, cols], np.arange(12))

    def test_linear_out_of_range(self) -> None:
        geom = GridGeometry.from_origin(0.0, 0.0, 1.0, (5, 5))

        with pytest.raises(IndexError):
            geom.linear_to_subscript(25)
        with pytest.raises(IndexError):
            geom.linear_to_subscript(-1)
        with pytest.raises(IndexError):
            geom.subscript_to_linear(5, 0)

    def test_subscript_to_coordinate(self) -> None:
        geom = GridGeometry.from_origin(100.0, 500.0, 10.0, (5, 5))

        assert geom.subscript_to_coordinate(0, 0) == (100.0, 500.0)
        assert geom.subscript_to_coordinate(1, 2) == (120.0, 490.0)

    def test_round_trip_all_subscripts(self) -> None:
        geom = GridGeometry.from_origin(500000.0, 4200000.0, 30.0, (4, 6))
        rows, cols = np.indices(geom.shape)

        x, y = geom.subscript_to_coordinate(rows.ravel(), cols.ravel())
        r2, c2 = geom.coordinate_to_subscript(x, y)

        assert_array_equal(r2, rows.ravel())
        assert_array_equal(c2, cols.ravel())
        assert_array_equal(geom.coordinate_to_index(x, y), np.arange(24))

    def test_coordinate_rounds_to_nearest_cell(self, small_geometry: GridGeometry) -> None:
        # 4 m right and 3 m below the centre of cell (2, 3)
        assert small_geometry.coordinate_to_index(34.0, 67.0) == 23
        # within half a cell of the grid edge is still inside
        assert small_geometry.coordinate_to_index(-4.0, 90.0) == 0

    def test_coordinate_outside_returns_sentinel(self, small_geometry: GridGeometry) -> None:
        assert small_geometry.coordinate_to_index(-10.0, 90.0) == OUTSIDE
        assert small_geometry.coordinate_to_index(50.0, 200.0) == OUTSIDE
        assert small_geometry.coordinate_to_subscript(500.0, 500.0) == (OUTSIDE, OUTSIDE)

    def test_coordinate_outside_mixed_batch(self, small_geometry: GridGeometry) -> None:
        pos = small_geometry.coordinate_to_index([0.0, -100.0, 90.0], [90.0, 90.0, 0.0])

        assert_array_equal(pos, [0, OUTSIDE, 99])

    def test_nan_coordinate_is_outside(self, small_geometry: GridGeometry) -> None:
        assert small_geometry.coordinate_to_index(np.nan, 0.0) == OUTSIDE

    def test_clamp(self, small_geometry: GridGeometry) -> None:
        x, y = small_geometry.clamp([-50.0, 45.0, 500.0], [-1.0, 45.0, 91.0])

        assert_allclose(x, [0.0, 45.0, 90.0])
        assert_allclose(y, [0.0, 45.0, 90.0])


class TestCropGeometry:
    """Tests for deriving window geometries."""

    def test_origin_is_recomputed(self, small_geometry: GridGeometry) -> None:
        window = small_geometry.crop_geometry(2, 5, 3, 4)

        assert window.shape == (4, 2)
        assert window.subscript_to_coordinate(0, 0) == small_geometry.subscript_to_coordinate(2, 3)

    def test_window_keeps_world_coordinates(self, small_geometry: GridGeometry) -> None:
        window = small_geometry.crop_geometry(1, 8, 2, 6)
        rows, cols = np.indices(window.shape)

        xw, yw = window.subscript_to_coordinate(rows, cols)
        xo, yo = small_geometry.subscript_to_coordinate(rows + 1, cols + 2)

        assert_allclose(xw, xo)
        assert_allclose(yw, yo)

    def test_window_out_of_range(self, small_geometry: GridGeometry) -> None:
        with pytest.raises(GridError):
            small_geometry.crop_geometry(0, 10, 0, 3)

    def test_is_aligned(self, small_geometry: GridGeometry) -> None:
        same = GridGeometry.from_origin(0.0, 90.0, 10.0, (10, 10))
        shifted = GridGeometry.from_origin(5.0, 90.0, 10.0, (10, 10))

        assert small_geometry.is_aligned(same)
        assert not small_geometry.is_aligned(shifted)
        assert not small_geometry.is_aligned(small_geometry.crop_geometry(0, 4, 0, 4))


# =============================================================================
# AffineGrid
# =============================================================================


class TestAffineGrid:
    """Tests for the AffineGrid value object."""

    def test_from_origin(self) -> None:
        dem = AffineGrid.from_origin(np.arange(6.0).reshape(2, 3), 0.0, 10.0, 5.0, name="dem")

        assert dem.shape == (2, 3)
        assert dem.cell_size == 5.0
        assert dem.name == "dem"
        assert dem.subscript_to_coordinate(1, 1) == (5.0, 5.0)

    def test_default_geometry(self) -> None:
        grid = AffineGrid(values=np.zeros((2, 4)))

        assert grid.shape == (2, 4)
        assert grid.transform == Affine.identity()

    def test_shape_mismatch_raises(self, small_geometry: GridGeometry) -> None:
        with pytest.raises(GridError, match="does not match"):
            AffineGrid(values=np.zeros((3, 3)), geometry=small_geometry)

    def test_values_must_be_2d(self) -> None:
        with pytest.raises(GridError, match="2-D"):
            AffineGrid(values=np.zeros(5))

    def test_values_are_private_and_read_only(self) -> None:
        source = np.zeros((2, 2))
        grid = AffineGrid(values=source)

        source[0, 0] = 99.0
        assert grid.values[0, 0] == 0.0
        with pytest.raises(ValueError):
            grid.values[0, 0] = 1.0

    def test_missing_values(self) -> None:
        values = np.array([[1.0, np.nan], [3.0, 4.0]])
        grid = AffineGrid(values=values)

        assert grid.has_missing
        assert_array_equal(grid.valid_mask(), [[True, False], [True, True]])

    def test_integer_grid_has_no_missing(self) -> None:
        grid = AffineGrid(values=np.ones((2, 2), dtype=np.int32))

        assert not grid.supports_nan
        assert not grid.has_missing
        assert grid.valid_mask().all()

    def test_replace_returns_new_grid(self, small_grid: AffineGrid) -> None:
        renamed = small_grid.replace(name="other")

        assert renamed is not small_grid
        assert renamed.name == "other"
        assert small_grid.name == "small"
        assert renamed.zunit == "m"

    def test_value_at(self, small_grid: AffineGrid) -> None:
        assert_array_equal(small_grid.value_at([0, 55, 99]), [0.0, 55.0, 99.0])

    def test_delegated_conversions(self, small_grid: AffineGrid) -> None:
        assert small_grid.coordinate_to_index(30.0, 70.0) == 23
        assert small_grid.linear_to_subscript(23) == (2, 3)
        assert small_grid.extent == Extent(0.0, 90.0, 0.0, 90.0)

    def test_equality(self, small_grid: AffineGrid) -> None:
        assert small_grid == small_grid.copy()
        assert small_grid != small_grid.replace(values=np.zeros((10, 10)))

    def test_equality_with_nan(self) -> None:
        values = np.array([[1.0, np.nan]])
        assert AffineGrid(values=values) == AffineGrid(values=values)

    def test_repr(self, small_grid: AffineGrid) -> None:
        assert "small" in repr(small_grid)
        assert "(10, 10)" in repr(small_grid)

    def test_conversions_emit_no_warnings(self, small_grid: AffineGrid) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            warnings.simplefilter("error", PendingDeprecationWarning)
            small_grid.subscript_to_coordinate(1, 2)
            small_grid.coordinate_to_index([30.0, 55.0], [70.0, 20.0])
            small_grid.geometry.coordinates()
            small_grid.geometry.crop_geometry(1, 3, 2, 4)
            _ = small_grid.geometry.bounds
