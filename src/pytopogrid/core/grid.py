"""
Georeferenced raster grids.

This module provides the raster data structures used throughout pytopogrid:

- :class:`GridGeometry`: Grid shape plus an affine transform, with the
  subscript/position/coordinate conversions
- :class:`AffineGrid`: Immutable 2-D cell values bound to a geometry
- :class:`Extent`: Axis-aligned coordinate range ``(xmin, xmax, ymin, ymax)``

Conventions
-----------
- **Indexing**: subscripts are ``(row, col)``, 0-based.
- **Linear positions**: row-major (C order), ``pos = row * cols + col``.
- **Registration**: the transform is *cell-centre registered*,
  ``x, y = transform @ (col, row)`` is the centre of cell ``(row, col)``.
  Use :attr:`GridGeometry.edge_transform` when a corner-registered
  (GDAL/rasterio style) transform is needed.
- **Outside coordinates**: :meth:`GridGeometry.coordinate_to_index` returns
  :data:`OUTSIDE` rather than raising.

Example
-------
>>> import numpy as np
>>> from pytopogrid.core.grid import AffineGrid
>>> grid = AffineGrid.from_origin(np.zeros((3, 4)), x0=0.0, y0=0.0, cell_size=10.0)
>>> grid.subscript_to_coordinate(1, 2)
(20.0, -10.0)
>>> int(grid.coordinate_to_index(20.0, -10.0))
6
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import numpy as np
from affine import Affine
from numpy.typing import ArrayLike, NDArray

from pytopogrid.core.exceptions import GridError

logger = logging.getLogger(__name__)

OUTSIDE = -1
"""Sentinel returned for coordinates that do not fall on a grid cell."""


class Extent(NamedTuple):
    """Axis-aligned coordinate range of a grid or a crop window."""

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    def overlaps(self, other: Extent) -> bool:
        """Return True if the two ranges share any area (edges included)."""
        return not (
            self.xmax < other.xmin
            or self.xmin > other.xmax
            or self.ymax < other.ymin
            or self.ymin > other.ymax
        )


def _scalar_or_array(value: NDArray[Any]) -> Any:
    """Unwrap 0-d results so scalar input gives scalar output."""
    if value.ndim == 0:
        return value.item()
    return value


@dataclass(frozen=True)
class GridGeometry:
    """
    Shape and georeferencing of a raster grid.

    Parameters
    ----------
    shape : tuple of int
        ``(rows, cols)`` of the grid.
    transform : Affine
        Cell-centre registered transform, ``(x, y) = transform @ (col, row)``.

    Examples
    --------
    >>> geom = GridGeometry.from_origin(100.0, 500.0, 10.0, (5, 5))
    >>> geom.subscript_to_coordinate(0, 0)
    (100.0, 500.0)
    >>> geom.linear_to_subscript(7)
    (1, 2)
    """

    shape: tuple[int, int]
    transform: Affine = field(default_factory=Affine.identity)

    def __post_init__(self) -> None:
        if len(self.shape) != 2:
            raise GridError(f"Grid shape must be (rows, cols), got {self.shape}")
        rows, cols = (int(s) for s in self.shape)
        if rows < 0 or cols < 0:
            raise GridError(f"Grid shape must be non-negative, got {self.shape}")
        object.__setattr__(self, "shape", (rows, cols))
        if self.transform.is_degenerate:
            raise GridError("Grid transform is degenerate (not invertible)")

    @classmethod
    def from_origin(
        cls,
        x0: float,
        y0: float,
        cell_size: float,
        shape: tuple[int, int],
        *,
        north_up: bool = True,
    ) -> GridGeometry:
        """
        Create an axis-aligned geometry.

        Parameters
        ----------
        x0, y0 : float
            World coordinate of the centre of cell ``(0, 0)``.
        cell_size : float
            Edge length of a (square) cell.
        shape : tuple of int
            ``(rows, cols)``.
        north_up : bool, optional
            If True (default), y decreases with increasing row index.
        """
        if cell_size <= 0:
            raise GridError(f"cell_size must be positive, got {cell_size}")
        dy = -cell_size if north_up else cell_size
        return cls(shape=tuple(shape), transform=Affine(cell_size, 0.0, x0, 0.0, dy, y0))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def rows(self) -> int:
        """Number of rows."""
        return self.shape[0]

    @property
    def cols(self) -> int:
        """Number of columns."""
        return self.shape[1]

    @property
    def size(self) -> int:
        """Number of cells."""
        return self.shape[0] * self.shape[1]

    @property
    def cell_size(self) -> float:
        """Cell size in x direction (cells are assumed square)."""
        return float(abs(self.transform.a))

    @property
    def edge_transform(self) -> Affine:
        """Corner-registered transform (GDAL/rasterio convention)."""
        return self.transform @ Affine.translation(-0.5, -0.5)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Outer cell-edge bounds as ``(xmin, ymin, xmax, ymax)``."""
        cols = np.array([0.0, self.cols, 0.0, self.cols])
        rows = np.array([0.0, 0.0, self.rows, self.rows])
        x, y = self.edge_transform @ (cols, rows)
        return (float(x.min()), float(y.min()), float(x.max()), float(y.max()))

    @property
    def extent(self) -> Extent:
        """Range spanned by cell *centres*."""
        last_col = max(self.cols - 1, 0)
        last_row = max(self.rows - 1, 0)
        cols = np.array([0.0, last_col, 0.0, last_col])
        rows = np.array([0.0, 0.0, last_row, last_row])
        x, y = self.transform @ (cols, rows)
        return Extent(float(x.min()), float(x.max()), float(y.min()), float(y.max()))

    @property
    def edge_extent(self) -> Extent:
        """Range spanned by the outer cell edges."""
        xmin, ymin, xmax, ymax = self.bounds
        return Extent(xmin, xmax, ymin, ymax)

    # ------------------------------------------------------------------
    # Index conversions
    # ------------------------------------------------------------------

    def linear_to_subscript(self, pos: ArrayLike) -> tuple[Any, Any]:
        """Convert row-major linear positions to ``(row, col)`` subscripts."""
        arr = np.asarray(pos)
        if np.any(arr < 0) or np.any(arr >= self.size):
            raise IndexError(f"Linear position out of range [0, {self.size})")
        row, col = np.unravel_index(arr.astype(np.int64), self.shape)
        return _scalar_or_array(np.asarray(row)), _scalar_or_array(np.asarray(col))

    def subscript_to_linear(self, row: ArrayLike, col: ArrayLike) -> Any:
        """Convert ``(row, col)`` subscripts to row-major linear positions."""
        r = np.asarray(row, dtype=np.int64)
        c = np.asarray(col, dtype=np.int64)
        if (
            np.any(r < 0)
            or np.any(r >= self.rows)
            or np.any(c < 0)
            or np.any(c >= self.cols)
        ):
            raise IndexError(f"Subscript out of range for grid of shape {self.shape}")
        return _scalar_or_array(np.asarray(np.ravel_multi_index((r, c), self.shape)))

    def subscript_to_coordinate(self, row: ArrayLike, col: ArrayLike) -> tuple[Any, Any]:
        """Return world coordinates of the centres of cells ``(row, col)``."""
        r = np.asarray(row, dtype=np.float64)
        c = np.asarray(col, dtype=np.float64)
        x, y = self.transform @ (c, r)
        return _scalar_or_array(np.asarray(x)), _scalar_or_array(np.asarray(y))

    def position_to_coordinate(self, pos: ArrayLike) -> tuple[Any, Any]:
        """Return world coordinates of the centres of linear positions."""
        row, col = self.linear_to_subscript(pos)
        return self.subscript_to_coordinate(row, col)

    def coordinate_to_subscript(self, x: ArrayLike, y: ArrayLike) -> tuple[Any, Any]:
        """
        Convert world coordinates to the nearest ``(row, col)`` subscripts.

        Coordinates whose nearest subscript falls outside the grid yield
        :data:`OUTSIDE` for both row and col.
        """
        xa, ya = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
        )
        fcol, frow = ~self.transform @ (xa, ya)
        # round half up so cell edges resolve consistently
        col = np.floor(np.asarray(fcol) + 0.5)
        row = np.floor(np.asarray(frow) + 0.5)
        inside = (
            np.isfinite(row)
            & np.isfinite(col)
            & (row >= 0)
            & (row < self.rows)
            & (col >= 0)
            & (col < self.cols)
        )
        row = np.where(inside, row, OUTSIDE).astype(np.int64)
        col = np.where(inside, col, OUTSIDE).astype(np.int64)
        return _scalar_or_array(row), _scalar_or_array(col)

    def coordinate_to_index(self, x: ArrayLike, y: ArrayLike) -> Any:
        """
        Convert world coordinates to row-major linear positions.

        Parameters
        ----------
        x, y : float or array-like
            World coordinates (broadcast against each other).

        Returns
        -------
        int or NDArray[np.int64]
            Linear position of the nearest cell, or :data:`OUTSIDE` where the
            coordinate does not fall on the grid. Callers must check.
        """
        row, col = self.coordinate_to_subscript(x, y)
        row = np.asarray(row)
        col = np.asarray(col)
        pos = np.where(row == OUTSIDE, OUTSIDE, row * self.cols + col).astype(np.int64)
        return _scalar_or_array(pos)

    def coordinates(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return x coordinates of the columns and y coordinates of the rows.

        Only meaningful for axis-aligned transforms.
        """
        x, _ = self.transform @ (np.arange(self.cols, dtype=np.float64), np.zeros(self.cols))
        _, y = self.transform @ (np.zeros(self.rows), np.arange(self.rows, dtype=np.float64))
        return np.asarray(x), np.asarray(y)

    def clamp(self, x: ArrayLike, y: ArrayLike) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Clamp coordinates independently to the range of cell centres."""
        ext = self.extent
        xc = np.clip(np.asarray(x, dtype=np.float64), ext.xmin, ext.xmax)
        yc = np.clip(np.asarray(y, dtype=np.float64), ext.ymin, ext.ymax)
        return xc, yc

    # ------------------------------------------------------------------
    # Derived geometries
    # ------------------------------------------------------------------

    def crop_geometry(self, row_min: int, row_max: int, col_min: int, col_max: int) -> GridGeometry:
        """
        Return the geometry of the inclusive window ``rows x cols``.

        The new transform is rebuilt so that its origin is the centre of
        cell ``(row_min, col_min)`` of this geometry.
        """
        if not (0 <= row_min <= row_max < self.rows and 0 <= col_min <= col_max < self.cols):
            raise GridError(
                f"Window rows {row_min}..{row_max}, cols {col_min}..{col_max} "
                f"outside grid of shape {self.shape}"
            )
        transform = self.transform @ Affine.translation(col_min, row_min)
        return GridGeometry(
            shape=(row_max - row_min + 1, col_max - col_min + 1), transform=transform
        )

    def is_aligned(self, other: GridGeometry, precision: float = 1e-9) -> bool:
        """Return True if both geometries have the same shape and transform."""
        return self.shape == other.shape and self.transform.almost_equals(
            other.transform, precision
        )


@dataclass(frozen=True, eq=False)
class AffineGrid:
    """
    Immutable raster of cell values with affine georeferencing.

    Parameters
    ----------
    values : NDArray
        2-D array of shape ``(rows, cols)``. A private read-only copy is kept.
    geometry : GridGeometry
        Shape and transform. Defaults to an identity transform.
    name : str, optional
        Descriptive name.
    zunit : str, optional
        Unit of the cell values.
    xyunit : str, optional
        Unit of the world coordinates.

    Raises
    ------
    GridError
        If ``values`` is not 2-D or does not match ``geometry.shape``.

    Examples
    --------
    >>> import numpy as np
    >>> dem = AffineGrid.from_origin(np.arange(6.0).reshape(2, 3), 0.0, 10.0, 5.0)
    >>> dem.shape
    (2, 3)
    >>> dem.subscript_to_coordinate(1, 1)
    (5.0, 5.0)
    """

    values: NDArray[Any]
    geometry: GridGeometry | None = None
    name: str = ""
    zunit: str = ""
    xyunit: str = ""

    def __post_init__(self) -> None:
        values = np.array(self.values, copy=True)
        if values.ndim != 2:
            raise GridError(f"Grid values must be 2-D, got {values.ndim}-D")
        values.setflags(write=False)
        object.__setattr__(self, "values", values)
        if self.geometry is None:
            object.__setattr__(self, "geometry", GridGeometry(shape=values.shape))
        elif tuple(self.geometry.shape) != values.shape:
            raise GridError(
                f"Grid values shape {values.shape} does not match "
                f"geometry shape {self.geometry.shape}"
            )

    @classmethod
    def from_origin(
        cls,
        values: ArrayLike,
        x0: float,
        y0: float,
        cell_size: float,
        *,
        north_up: bool = True,
        name: str = "",
        zunit: str = "",
        xyunit: str = "",
    ) -> AffineGrid:
        """Create a grid whose cell ``(0, 0)`` is centred on ``(x0, y0)``."""
        arr = np.asarray(values)
        geometry = GridGeometry.from_origin(x0, y0, cell_size, arr.shape, north_up=north_up)
        return cls(values=arr, geometry=geometry, name=name, zunit=zunit, xyunit=xyunit)

    def replace(self, **changes: Any) -> AffineGrid:
        """Return a new grid with the given fields replaced."""
        fields = {
            "values": self.values,
            "geometry": self.geometry,
            "name": self.name,
            "zunit": self.zunit,
            "xyunit": self.xyunit,
        }
        fields.update(changes)
        return AffineGrid(**fields)

    def copy(self) -> AffineGrid:
        """Return an independent copy of this grid."""
        return self.replace()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        """``(rows, cols)``."""
        return self.geometry.shape

    @property
    def transform(self) -> Affine:
        """Cell-centre registered transform."""
        return self.geometry.transform

    @property
    def cell_size(self) -> float:
        """Cell size."""
        return self.geometry.cell_size

    @property
    def dtype(self) -> np.dtype:
        return self.values.dtype

    @property
    def supports_nan(self) -> bool:
        """True if the value dtype can hold NaN."""
        return bool(np.issubdtype(self.values.dtype, np.inexact))

    @property
    def has_missing(self) -> bool:
        """True if any cell is NaN."""
        return self.supports_nan and bool(np.isnan(self.values).any())

    def valid_mask(self) -> NDArray[np.bool_]:
        """Boolean array, True where the cell holds a value (not NaN)."""
        if not self.supports_nan:
            return np.ones(self.shape, dtype=bool)
        return ~np.isnan(self.values)

    def is_aligned(self, other: AffineGrid | GridGeometry) -> bool:
        """Return True if ``other`` shares this grid's shape and transform."""
        geometry = other.geometry if isinstance(other, AffineGrid) else other
        return self.geometry.is_aligned(geometry)

    def value_at(self, pos: ArrayLike) -> Any:
        """Return cell values at row-major linear positions."""
        row, col = self.geometry.linear_to_subscript(pos)
        return self.values[row, col]

    # ------------------------------------------------------------------
    # Delegated geometry operations
    # ------------------------------------------------------------------

    def subscript_to_coordinate(self, row: ArrayLike, col: ArrayLike) -> tuple[Any, Any]:
        return self.geometry.subscript_to_coordinate(row, col)

    def coordinate_to_index(self, x: ArrayLike, y: ArrayLike) -> Any:
        return self.geometry.coordinate_to_index(x, y)

    def coordinate_to_subscript(self, x: ArrayLike, y: ArrayLike) -> tuple[Any, Any]:
        return self.geometry.coordinate_to_subscript(x, y)

    def linear_to_subscript(self, pos: ArrayLike) -> tuple[Any, Any]:
        return self.geometry.linear_to_subscript(pos)

    def subscript_to_linear(self, row: ArrayLike, col: ArrayLike) -> Any:
        return self.geometry.subscript_to_linear(row, col)

    def coordinates(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        return self.geometry.coordinates()

    @property
    def extent(self) -> Extent:
        return self.geometry.extent

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineGrid):
            return NotImplemented
        return (
            self.geometry.is_aligned(other.geometry)
            and self.values.dtype == other.values.dtype
            and np.array_equal(self.values, other.values, equal_nan=self.supports_nan)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        label = f"name={self.name!r}, " if self.name else ""
        return f"AffineGrid({label}shape={self.shape}, cell_size={self.cell_size})"
