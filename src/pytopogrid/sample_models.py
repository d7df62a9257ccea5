"""
Sample grids and stream networks for pytopogrid documentation and testing.

This module provides functions to create a synthetic valley DEM and stream
networks laid along its floor, so the package can be explored without any
raster input files.

Example
-------
>>> from pytopogrid.sample_models import create_sample_grid, create_sample_stream_network
>>> dem = create_sample_grid()
>>> net = create_sample_stream_network(dem)
>>> print(f"Sample network: {net.n_nodes} nodes, {net.n_channel_heads} channel head")
Sample network: 20 nodes, 1 channel head
"""

from __future__ import annotations

import numpy as np

from pytopogrid.core.attributes import NodeAttributeList
from pytopogrid.core.grid import AffineGrid
from pytopogrid.core.network import NO_RECEIVER, StreamNetwork


def create_sample_grid(
    rows: int = 20,
    cols: int = 15,
    cell_size: float = 30.0,
    x0: float = 500000.0,
    y0: float = 4200000.0,
    nan_border: int = 0,
    base_elevation: float = 100.0,
) -> AffineGrid:
    """
    Create a V-shaped valley DEM draining from the first to the last row.

    Parameters
    ----------
    rows : int, optional
        Number of rows. Default is 20.
    cols : int, optional
        Number of columns. Default is 15.
    cell_size : float, optional
        Cell size in map units. Default is 30.0.
    x0, y0 : float, optional
        Centre coordinate of cell ``(0, 0)``.
    nan_border : int, optional
        Width of a NaN margin around the grid. Default is 0.
    base_elevation : float, optional
        Elevation of the valley outlet. Default is 100.0.

    Returns
    -------
    AffineGrid
        North-up elevation grid named ``"sample dem"`` in metres.
    """
    row = np.arange(rows, dtype=np.float64)[:, None]
    col = np.arange(cols, dtype=np.float64)[None, :]
    mid = (cols - 1) // 2

    # down-valley slope of 5 % and side slopes of 20 %
    z = base_elevation + 0.05 * cell_size * (rows - 1 - row) + 0.2 * cell_size * np.abs(col - mid)

    if nan_border > 0:
        z[:nan_border, :] = np.nan
        z[-nan_border:, :] = np.nan
        z[:, :nan_border] = np.nan
        z[:, -nan_border:] = np.nan

    return AffineGrid.from_origin(
        z, x0=x0, y0=y0, cell_size=cell_size, name="sample dem", zunit="m", xyunit="m"
    )


def create_sample_stream_network(grid: AffineGrid | None = None) -> StreamNetwork:
    """
    Create a single-channel network along the valley floor.

    The channel head is in row 0 and the outlet in the last row of the
    centre column of ``grid`` (default: :func:`create_sample_grid`).
    """
    if grid is None:
        grid = create_sample_grid()
    rows, cols = grid.shape
    mid = (cols - 1) // 2

    positions = np.arange(rows, dtype=np.int64) * cols + mid
    receivers = np.arange(1, rows + 1, dtype=np.int64)
    receivers[-1] = NO_RECEIVER
    return StreamNetwork.from_receivers(grid.geometry, positions, receivers)


def create_sample_branching_network(
    grid: AffineGrid | None = None,
    tributary_length: int = 4,
) -> StreamNetwork:
    """
    Create a network with a main channel and one tributary.

    The tributary starts in row 0, ``tributary_length`` columns left of the
    centre column, and runs diagonally down-right until it joins the main
    channel. The network therefore has two channel heads and one outlet.

    Parameters
    ----------
    grid : AffineGrid, optional
        Grid to build on. Default is :func:`create_sample_grid`.
    tributary_length : int, optional
        Number of tributary nodes. Default is 4.
    """
    if grid is None:
        grid = create_sample_grid()
    rows, cols = grid.shape
    mid = (cols - 1) // 2
    if not 0 < tributary_length <= min(mid, rows - 1):
        raise ValueError(f"tributary_length must be between 1 and {min(mid, rows - 1)}")

    main = np.arange(rows, dtype=np.int64) * cols + mid
    main_receivers = np.arange(1, rows + 1, dtype=np.int64)
    main_receivers[-1] = NO_RECEIVER

    k = tributary_length
    trib_rows = np.arange(k, dtype=np.int64)
    trib_cols = mid - k + trib_rows
    trib = trib_rows * cols + trib_cols
    trib_receivers = rows + np.arange(1, k + 1, dtype=np.int64)
    # last tributary node drains into the main channel at row k
    trib_receivers[-1] = k

    positions = np.concatenate([main, trib])
    receivers = np.concatenate([main_receivers, trib_receivers])
    return StreamNetwork.from_receivers(grid.geometry, positions, receivers)


def create_sample_attribute(
    network: StreamNetwork,
    grid: AffineGrid | None = None,
    name: str = "elevation",
) -> NodeAttributeList:
    """
    Create a node-attribute list of grid values at the network nodes.

    Parameters
    ----------
    network : StreamNetwork
        Network to attach the values to.
    grid : AffineGrid, optional
        Grid aligned with the network. Default is :func:`create_sample_grid`.
    name : str, optional
        Name of the attribute. Default is ``"elevation"``.
    """
    if grid is None:
        grid = create_sample_grid()
    return NodeAttributeList.from_grid(network, grid, name=name)
