"""Pytest configuration and fixtures for pytopogrid tests."""

from __future__ import annotations

import numpy as np
import pytest

from pytopogrid.core.grid import AffineGrid, GridGeometry
from pytopogrid.core.network import StreamNetwork
from pytopogrid.sample_models import (
    create_sample_branching_network,
    create_sample_grid,
    create_sample_stream_network,
)


@pytest.fixture
def small_geometry() -> GridGeometry:
    """
    Geometry of a 10x10 north-up grid with 10 m cells.

    Cell centres run from x=0 (col 0) to x=90 (col 9) and from
    y=90 (row 0) down to y=0 (row 9).
    """
    return GridGeometry.from_origin(0.0, 90.0, 10.0, (10, 10))


@pytest.fixture
def small_grid(small_geometry: GridGeometry) -> AffineGrid:
    """10x10 grid whose values equal their linear position."""
    values = np.arange(100, dtype=np.float64).reshape(10, 10)
    return AffineGrid(values=values, geometry=small_geometry, name="small", zunit="m")


@pytest.fixture
def sample_dem() -> AffineGrid:
    """Synthetic valley DEM, 20 rows by 15 columns, 30 m cells."""
    return create_sample_grid()


@pytest.fixture
def sample_network(sample_dem: AffineGrid) -> StreamNetwork:
    """Single channel down the centre column of the sample DEM."""
    return create_sample_stream_network(sample_dem)


@pytest.fixture
def branching_network(sample_dem: AffineGrid) -> StreamNetwork:
    """Main channel plus one tributary (two channel heads)."""
    return create_sample_branching_network(sample_dem)


@pytest.fixture
def three_node_network() -> StreamNetwork:
    """
    Single stream of three nodes with distance [0, 5, 10].

    Node 0 is the outlet, node 2 the channel head.
    """
    geometry = GridGeometry.from_origin(0.0, 0.0, 5.0, (1, 3))
    return StreamNetwork(
        node_positions=np.array([0, 1, 2]),
        receivers=np.array([-1, 0, 1]),
        distance=np.array([0.0, 5.0, 10.0]),
        geometry=geometry,
    )


@pytest.fixture
def position_network() -> StreamNetwork:
    """Network on a 2x5 grid with nodes at positions [3, 7, 9]."""
    geometry = GridGeometry.from_origin(0.0, 10.0, 1.0, (2, 5))
    return StreamNetwork.from_receivers(geometry, [3, 7, 9], [1, 2, -1])
