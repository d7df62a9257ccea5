"""Unit tests for sample grid and network generators."""

from __future__ import annotations

import numpy as np
import pytest

from pytopogrid.core.grid import AffineGrid
from pytopogrid.core.network import StreamNetwork
from pytopogrid.sample_models import (
    create_sample_attribute,
    create_sample_branching_network,
    create_sample_grid,
    create_sample_stream_network,
)


# =============================================================================
# Test create_sample_grid
# =============================================================================


class TestCreateSampleGrid:
    """Tests for create_sample_grid function."""

    def test_default_grid(self) -> None:
        dem = create_sample_grid()

        assert isinstance(dem, AffineGrid)
        assert dem.shape == (20, 15)
        assert dem.cell_size == 30.0
        assert dem.name == "sample dem"
        assert dem.zunit == "m"
        assert not dem.has_missing

    def test_origin(self) -> None:
        dem = create_sample_grid(x0=1000.0, y0=2000.0)

        assert dem.subscript_to_coordinate(0, 0) == (1000.0, 2000.0)

    def test_valley_shape(self) -> None:
        dem = create_sample_grid(rows=10, cols=9)
        z = dem.values

        # lowest cell of every row is the centre column
        assert np.all(np.argmin(z, axis=1) == 4)
        # valley floor falls towards the last row
        assert np.all(np.diff(z[:, 4]) < 0)
        assert z[-1, 4] == 100.0

    def test_nan_border(self) -> None:
        dem = create_sample_grid(rows=8, cols=8, nan_border=1)

        assert dem.has_missing
        assert np.all(np.isnan(dem.values[0, :]))
        assert np.all(np.isnan(dem.values[:, -1]))
        assert not np.any(np.isnan(dem.values[1:-1, 1:-1]))


# =============================================================================
# Test sample networks
# =============================================================================


class TestCreateSampleStreamNetwork:
    """Tests for create_sample_stream_network function."""

    def test_default_network(self) -> None:
        net = create_sample_stream_network()

        assert isinstance(net, StreamNetwork)
        assert net.n_nodes == 20
        assert net.n_channel_heads == 1
        assert net.n_outlets == 1

    def test_distance(self) -> None:
        net = create_sample_stream_network(create_sample_grid(rows=5, cols=3, cell_size=10.0))

        np.testing.assert_allclose(net.distance, [40.0, 30.0, 20.0, 10.0, 0.0])

    def test_nodes_on_centre_column(self) -> None:
        dem = create_sample_grid(rows=6, cols=7)
        net = create_sample_stream_network(dem)

        rows, cols = dem.linear_to_subscript(net.node_positions)
        np.testing.assert_array_equal(rows, np.arange(6))
        np.testing.assert_array_equal(cols, 3)


class TestCreateSampleBranchingNetwork:
    """Tests for create_sample_branching_network function."""

    def test_default_network(self) -> None:
        net = create_sample_branching_network()

        assert net.n_nodes == 24
        assert net.n_channel_heads == 2
        assert net.n_outlets == 1

    def test_tributary_head_is_most_distant(self) -> None:
        net = create_sample_branching_network()

        assert np.argmax(net.distance) == 20
        assert net.distance[20] > net.distance[0]

    def test_tributary_length(self) -> None:
        net = create_sample_branching_network(tributary_length=2)

        assert net.n_nodes == 22

    def test_invalid_tributary_length(self) -> None:
        with pytest.raises(ValueError, match="tributary_length"):
            create_sample_branching_network(tributary_length=0)
        with pytest.raises(ValueError, match="tributary_length"):
            create_sample_branching_network(create_sample_grid(rows=4, cols=5), tributary_length=3)


class TestCreateSampleAttribute:
    """Tests for create_sample_attribute function."""

    def test_elevation_along_network(self) -> None:
        dem = create_sample_grid()
        net = create_sample_stream_network(dem)

        nal = create_sample_attribute(net, dem)

        assert nal.name == "elevation"
        assert len(nal) == net.n_nodes
        np.testing.assert_array_equal(nal.values, dem.values.ravel()[net.node_positions])

    def test_default_grid(self) -> None:
        net = create_sample_branching_network()

        nal = create_sample_attribute(net, name="z")

        assert nal.name == "z"
        assert nal.network is net
