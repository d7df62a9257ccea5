"""
Cropping grids to the minimum bounding rectangle of a selection.

A selection can be given in several shapes. Each one is a small frozen
dataclass that resolves to the canonical representation, a sorted array of
row-major linear positions, before the shared bounding-box step runs:

- :class:`ValidCells`: every non-NaN cell (no selector given)
- :class:`MaskSelection`: True cells of a boolean mask aligned with the grid
- :class:`PositionSelection`: explicit linear positions
- :class:`ExtentSelection`: a coordinate :class:`~pytopogrid.core.grid.Extent`
- :class:`CoordinateSelection`: pairs of x and y coordinates

Example
-------
>>> import numpy as np
>>> from pytopogrid.core.grid import AffineGrid
>>> from pytopogrid.core.selection import crop
>>> dem = AffineGrid.from_origin(np.arange(16.0).reshape(4, 4), 0.0, 0.0, 1.0)
>>> mask = np.zeros((4, 4), dtype=bool)
>>> mask[1, 1] = mask[2, 2] = True
>>> crop(dem, mask).shape
(2, 2)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pytopogrid.core.exceptions import InvalidSelection
from pytopogrid.core.grid import OUTSIDE, AffineGrid, Extent

logger = logging.getLogger(__name__)

MIN_SELECTION = 2
MASK_NAME = "mask for cropping"


@dataclass
class ResolvedSelection:
    """Linear positions of a selection, plus the grid they are cropped from.

    ``source`` differs from the input grid only when a mask selection
    substituted a fill value.
    """

    positions: NDArray[np.int64]
    source: AffineGrid
    diagnostics: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidCells:
    """Select all cells that are not NaN."""

    def resolve(self, grid: AffineGrid) -> ResolvedSelection:
        positions = np.flatnonzero(grid.valid_mask()).astype(np.int64)
        if positions.size == 0:
            raise InvalidSelection("Grid has no valid (non-NaN) cells to crop to")
        return ResolvedSelection(positions=positions, source=grid)


@dataclass(frozen=True)
class MaskSelection:
    """
    Select the True cells of a mask.

    Parameters
    ----------
    mask : AffineGrid or NDArray[np.bool_]
        Mask aligned with the grid being cropped. A grid mask must share the
        transform too; its values are cast to bool.
    fill_value : float, optional
        If given, written into a copy of the grid wherever the mask is
        False before cropping. NaN on an integer or boolean grid is replaced
        by 0 and reported as a diagnostic.
    """

    mask: AffineGrid | NDArray[np.bool_]
    fill_value: float | None = None

    def _mask_array(self, grid: AffineGrid) -> NDArray[np.bool_]:
        if isinstance(self.mask, AffineGrid):
            if not grid.is_aligned(self.mask):
                raise InvalidSelection("Mask grid is not aligned with the grid to crop")
            return np.asarray(self.mask.values).astype(bool)
        mask = np.asarray(self.mask)
        if mask.shape != grid.shape:
            raise InvalidSelection(
                f"Mask shape {mask.shape} does not match grid shape {grid.shape}"
            )
        return mask.astype(bool)

    def resolve(self, grid: AffineGrid) -> ResolvedSelection:
        mask = self._mask_array(grid)
        diagnostics: list[str] = []
        source = grid
        if self.fill_value is not None:
            fill = self.fill_value
            if np.isnan(fill) and not grid.supports_nan:
                fill = 0
                msg = (
                    f"fill value set to zero since data type {grid.dtype} of the "
                    "input grid does not support NaN"
                )
                logger.warning(msg)
                diagnostics.append(msg)
            elif not grid.supports_nan:
                cast = np.asarray(fill).astype(grid.dtype)
                if cast != fill:
                    msg = (
                        f"fill value {fill!r} changed to {cast.item()!r} to fit data type "
                        f"{grid.dtype} of the input grid"
                    )
                    logger.warning(msg)
                    diagnostics.append(msg)
                fill = cast
            values = np.array(grid.values, copy=True)
            values[~mask] = fill
            source = grid.replace(values=values)

        positions = np.flatnonzero(mask).astype(np.int64)
        if positions.size < MIN_SELECTION:
            raise InvalidSelection(
                f"Mask must have at least {MIN_SELECTION} true cells, got {positions.size}"
            )
        return ResolvedSelection(positions=positions, source=source, diagnostics=diagnostics)


@dataclass(frozen=True)
class PositionSelection:
    """Select explicit row-major linear positions."""

    positions: ArrayLike

    def resolve(self, grid: AffineGrid) -> ResolvedSelection:
        positions = np.asarray(self.positions)
        if positions.ndim != 1:
            raise InvalidSelection(
                f"Positions must be a 1-D array of linear positions, got shape {positions.shape}"
            )
        if positions.size < MIN_SELECTION:
            raise InvalidSelection(
                f"At least {MIN_SELECTION} positions are required to crop the grid, "
                f"got {positions.size}"
            )
        if not np.issubdtype(positions.dtype, np.integer):
            if not np.all(np.isfinite(positions)) or np.any(positions != np.round(positions)):
                raise InvalidSelection("Positions must be integers")
        positions = positions.astype(np.int64)
        if np.any(positions < 0) or np.any(positions >= grid.geometry.size):
            raise InvalidSelection(
                f"Positions must range between 0 and {grid.geometry.size - 1}"
            )
        return ResolvedSelection(positions=np.unique(positions), source=grid)


@dataclass(frozen=True)
class ExtentSelection:
    """Select the cells inside a coordinate extent."""

    extent: Extent

    def resolve(self, grid: AffineGrid) -> ResolvedSelection:
        ext = Extent(*self.extent)
        if ext.xmin > ext.xmax or ext.ymin > ext.ymax:
            raise InvalidSelection(f"Extent is inverted: {tuple(ext)}")
        if not ext.overlaps(grid.geometry.edge_extent):
            raise InvalidSelection("Crop extent is outside the grid extent")
        xs = np.array([ext.xmin, ext.xmax, ext.xmin, ext.xmax])
        ys = np.array([ext.ymin, ext.ymin, ext.ymax, ext.ymax])
        xs, ys = grid.geometry.clamp(xs, ys)
        positions = np.asarray(grid.coordinate_to_index(xs, ys))
        if np.any(positions == OUTSIDE):
            raise InvalidSelection("Crop extent is outside the grid extent")
        return ResolvedSelection(positions=np.unique(positions), source=grid)


@dataclass(frozen=True)
class CoordinateSelection:
    """Select the cells nearest to coordinate pairs, clamped to the grid."""

    x: ArrayLike
    y: ArrayLike

    def resolve(self, grid: AffineGrid) -> ResolvedSelection:
        x = np.asarray(self.x, dtype=np.float64).ravel()
        y = np.asarray(self.y, dtype=np.float64).ravel()
        if x.shape != y.shape:
            raise InvalidSelection(
                f"x and y must have the same length, got {x.size} and {y.size}"
            )
        if x.size == 0:
            raise InvalidSelection("No coordinates given")
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
            raise InvalidSelection("Coordinates must be finite")
        x, y = grid.geometry.clamp(x, y)
        positions = np.asarray(grid.coordinate_to_index(x, y))
        return ResolvedSelection(positions=np.unique(positions), source=grid)


Selection = Union[ValidCells, MaskSelection, PositionSelection, ExtentSelection, CoordinateSelection]

_SELECTION_TYPES = (ValidCells, MaskSelection, PositionSelection, ExtentSelection, CoordinateSelection)


def as_selection(
    selector: Any = None,
    y: ArrayLike | None = None,
    fill_value: float | None = None,
) -> Selection:
    """
    Map raw caller input onto one of the selection types.

    Parameters
    ----------
    selector : optional
        ``None`` (valid cells), a Selection, an :class:`AffineGrid` or
        boolean array (mask), an :class:`Extent` (extent), an integer
        array-like (positions), a pair ``(x_range, y_range)`` of two-element
        ranges (extent), or x coordinates when ``y`` is given.
    y : array-like, optional
        y coordinates paired with ``selector``.
    fill_value : float, optional
        Only valid together with a mask.

    Raises
    ------
    TypeError
        If the input shape is not recognised or ``fill_value`` is given
        without a mask.
    """
    if y is not None:
        if selector is None:
            raise TypeError("x coordinates are required when y is given")
        selection: Selection = CoordinateSelection(x=selector, y=y)
    elif selector is None:
        selection = ValidCells()
    elif isinstance(selector, _SELECTION_TYPES):
        selection = selector
    elif isinstance(selector, AffineGrid):
        selection = MaskSelection(mask=selector, fill_value=fill_value)
    elif isinstance(selector, Extent):
        selection = ExtentSelection(extent=selector)
    else:
        arr = np.asarray(selector)
        if arr.dtype == np.bool_:
            selection = MaskSelection(mask=arr, fill_value=fill_value)
        elif np.issubdtype(arr.dtype, np.number) and arr.shape == (2, 2):
            # (x_range, y_range)
            selection = ExtentSelection(
                extent=Extent(float(arr[0, 0]), float(arr[0, 1]), float(arr[1, 0]), float(arr[1, 1]))
            )
        elif np.issubdtype(arr.dtype, np.number) and arr.ndim <= 1:
            selection = PositionSelection(positions=arr)
        else:
            raise TypeError(f"Cannot interpret {type(selector).__name__} as a crop selection")

    if fill_value is not None and not isinstance(selection, MaskSelection):
        raise TypeError("fill_value is only supported together with a mask")
    if isinstance(selection, MaskSelection) and fill_value is not None and selection.fill_value is None:
        selection = MaskSelection(mask=selection.mask, fill_value=fill_value)
    return selection


@dataclass
class CropResult:
    """
    Result of cropping a grid.

    Attributes
    ----------
    grid : AffineGrid
        The cropped grid.
    mask : AffineGrid
        Boolean grid of the cropped shape, True at selected cells.
    rows : tuple of int
        Inclusive ``(row_min, row_max)`` of the window in the input grid.
    cols : tuple of int
        Inclusive ``(col_min, col_max)`` of the window in the input grid.
    diagnostics : list of str
        Non-fatal conditions met while cropping.
    """

    grid: AffineGrid
    mask: AffineGrid
    rows: tuple[int, int]
    cols: tuple[int, int]
    diagnostics: list[str] = field(default_factory=list)


class GridSubsetter:
    """
    Crop an :class:`AffineGrid` to the bounding rectangle of a selection.

    Parameters
    ----------
    grid : AffineGrid
        Grid to crop. Never modified.

    Examples
    --------
    >>> import numpy as np
    >>> from pytopogrid.core.grid import AffineGrid
    >>> dem = AffineGrid.from_origin(np.ones((5, 5)), 0.0, 0.0, 1.0)
    >>> result = GridSubsetter(dem).crop([6, 18])
    >>> result.grid.shape, result.rows, result.cols
    ((3, 3), (1, 3), (1, 3))
    """

    def __init__(self, grid: AffineGrid) -> None:
        self.grid = grid

    def crop(
        self,
        selector: Any = None,
        y: ArrayLike | None = None,
        *,
        fill_value: float | None = None,
    ) -> CropResult:
        """Crop to ``selector`` (see :func:`as_selection` for accepted forms)."""
        grid = self.grid
        selection = as_selection(selector, y, fill_value=fill_value)

        if isinstance(selection, ValidCells) and not grid.has_missing:
            logger.debug("Grid %r has no missing cells; crop is a no-op", grid.name)
            mask = AffineGrid(
                values=np.ones(grid.shape, dtype=bool),
                geometry=grid.geometry,
                name=MASK_NAME,
                xyunit=grid.xyunit,
            )
            return CropResult(
                grid=grid.copy(),
                mask=mask,
                rows=(0, grid.shape[0] - 1),
                cols=(0, grid.shape[1] - 1),
            )

        resolved = selection.resolve(grid)
        return _crop_to_positions(resolved)


def _crop_to_positions(resolved: ResolvedSelection) -> CropResult:
    source = resolved.source
    rows, cols = source.geometry.linear_to_subscript(resolved.positions)
    rows = np.atleast_1d(rows)
    cols = np.atleast_1d(cols)
    row_min, row_max = int(rows.min()), int(rows.max())
    col_min, col_max = int(cols.min()), int(cols.max())

    geometry = source.geometry.crop_geometry(row_min, row_max, col_min, col_max)
    values = np.array(source.values[row_min : row_max + 1, col_min : col_max + 1], copy=True)
    name = f"{source.name} (cropped)" if source.name else "(cropped)"
    cropped = source.replace(values=values, geometry=geometry, name=name)

    mask_values = np.zeros(geometry.shape, dtype=bool)
    mask_values[rows - row_min, cols - col_min] = True
    mask = AffineGrid(values=mask_values, geometry=geometry, name=MASK_NAME, xyunit=source.xyunit)

    logger.debug(
        "Cropped %s to rows %d..%d, cols %d..%d (%d selected cells)",
        source.shape,
        row_min,
        row_max,
        col_min,
        col_max,
        resolved.positions.size,
    )
    return CropResult(
        grid=cropped,
        mask=mask,
        rows=(row_min, row_max),
        cols=(col_min, col_max),
        diagnostics=list(resolved.diagnostics),
    )


def crop(
    grid: AffineGrid,
    selector: Any = None,
    y: ArrayLike | None = None,
    *,
    fill_value: float | None = None,
    return_mask: bool = False,
) -> AffineGrid | tuple[AffineGrid, AffineGrid]:
    """
    Crop a grid to the minimum axis-aligned bounding rectangle of a selection.

    Parameters
    ----------
    grid : AffineGrid
        Grid to crop.
    selector : optional
        Nothing (crop away NaN margins), a boolean mask (array or grid),
        linear positions, an :class:`Extent`, or x coordinates together
        with ``y``.
    y : array-like, optional
        y coordinates paired with x coordinates in ``selector``.
    fill_value : float, optional
        With a mask: value written where the mask is False before cropping.
    return_mask : bool, optional
        Also return the cropped selection mask.

    Returns
    -------
    AffineGrid or tuple of AffineGrid
        The cropped grid, and the selection mask if ``return_mask``.

    Raises
    ------
    InvalidSelection
        If the selection is empty, too small, misaligned or out of bounds.
    """
    result = GridSubsetter(grid).crop(selector, y, fill_value=fill_value)
    if return_mask:
        return result.grid, result.mask
    return result.grid
