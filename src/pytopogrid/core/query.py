"""
Retrieve node-attribute values from a stream network.

This module provides :class:`AttributeQuery`, which reads values from a
node-attribute list in one of three ways:

- **distance**: linear interpolation along a single river by distance from
  the outlet
- **coordinates**: value at the network node nearest to each coordinate
- **positions**: value at exact grid positions, NaN where a position is
  not a network node

Example
-------
>>> from pytopogrid.core.query import AttributeQuery
>>> query = AttributeQuery(network)  # doctest: +SKIP
>>> query.get_value(elevation, distance=[7.5]).values  # doctest: +SKIP
array([250.])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pytopogrid.core.attributes import (
    AttributeSource,
    NodeAttributeList,
    get_nal,
    is_node_attribute_list,
)
from pytopogrid.core.config import DEFAULT_CONFIG, QueryConfig
from pytopogrid.core.exceptions import InvalidAttributeList, UnsupportedTopology
from pytopogrid.core.grid import AffineGrid
from pytopogrid.core.network import NOT_IN_NETWORK, SnapResult, StreamNetwork

logger = logging.getLogger(__name__)

MODES = ("distance", "coordinates", "positions")


@dataclass
class QueryResult:
    """
    Values returned by :meth:`AttributeQuery.get_value`.

    Attributes
    ----------
    values : NDArray
        One row per query element, in query order. 1-D when the attribute
        list was 1-D, otherwise ``(n_queries, m)``.
    mode : str
        One of ``"distance"``, ``"coordinates"``, ``"positions"``.
    diagnostics : list of str
        Non-fatal conditions met while answering the query.
    snap : SnapResult, optional
        Snapping details for coordinate queries.
    """

    values: NDArray[Any]
    mode: str
    diagnostics: list[str] = field(default_factory=list)
    snap: SnapResult | None = None


def _is_requested(selector: Any) -> bool:
    return selector is not None and np.size(selector) > 0


def _coordinate_pairs(coordinates: Any) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    if isinstance(coordinates, tuple) and len(coordinates) == 2:
        x = np.asarray(coordinates[0], dtype=np.float64)
        y = np.asarray(coordinates[1], dtype=np.float64)
        if x.ndim > 1 or y.ndim > 1:
            raise ValueError("coordinates given as a tuple must be (xs, ys) with 1-D xs and ys")
        x, y = x.ravel(), y.ravel()
    else:
        xy = np.atleast_2d(np.asarray(coordinates, dtype=np.float64))
        if xy.shape[1] != 2:
            raise ValueError(f"coordinates must have shape (n, 2), got {xy.shape}")
        x, y = xy[:, 0], xy[:, 1]
    if x.shape != y.shape:
        raise ValueError("x and y coordinates must have the same length")
    return x, y


class AttributeQuery:
    """
    Query interface over the node-attribute lists of one network.

    Parameters
    ----------
    network : StreamNetwork
        Network whose node-attribute lists are queried.
    config : QueryConfig, optional
        Snap tolerance settings. Defaults to :data:`DEFAULT_CONFIG`.
    """

    def __init__(self, network: StreamNetwork, config: QueryConfig | None = None) -> None:
        self.network = network
        self.config = config or DEFAULT_CONFIG

    def get_value(
        self,
        nal: AttributeSource | list[AttributeSource],
        *,
        distance: ArrayLike | None = None,
        coordinates: ArrayLike | tuple[ArrayLike, ArrayLike] | None = None,
        positions: ArrayLike | None = None,
    ) -> QueryResult:
        """
        Retrieve values of ``nal`` by distance, coordinates or grid position.

        Exactly one of ``distance``, ``coordinates`` and ``positions`` must
        be given; empty arrays count as not given.

        Parameters
        ----------
        nal : array-like, NodeAttributeList, AffineGrid, or list of these
            Attribute values. Grids are first read at the network nodes.
        distance : array-like of float, optional
            Distances from the outlet. Requires a network with a single
            channel head. Values outside the network's distance range give
            NaN.
        coordinates : array-like, optional
            ``(n, 2)`` array or list of x/y pairs, or a tuple ``(xs, ys)``.
            A tuple is always read as ``(xs, ys)``: ``((0, 0), (10, 0))``
            means the points ``(0, 10)`` and ``(0, 0)``. Pass a list or an
            array for a sequence of points.
        positions : array-like of int, optional
            Linear positions in the network's originating grid.

        Returns
        -------
        QueryResult

        Raises
        ------
        ValueError
            If not exactly one selector is given.
        InvalidAttributeList
            If ``nal`` does not match the network.
        UnsupportedTopology
            For a distance query on a network without exactly one channel head.
        """
        selectors = {"distance": distance, "coordinates": coordinates, "positions": positions}
        requested = [mode for mode in MODES if _is_requested(selectors[mode])]
        if len(requested) != 1:
            raise ValueError(
                "Exactly one of distance, coordinates or positions must be given, "
                f"got {requested or 'none'}"
            )
        mode = requested[0]

        squeeze = self._is_single_column(nal)
        values = get_nal(self.network, nal)
        if (
            values.ndim != 2
            or values.shape[1] == 0
            or not is_node_attribute_list(self.network, values[:, 0])
        ):
            raise InvalidAttributeList(
                "nal is not a valid node-attribute list",
                expected=self.network.n_nodes,
                actual=values.shape[0] if values.ndim else None,
            )

        logger.debug("Querying %d attribute column(s) by %s", values.shape[1], mode)
        if mode == "distance":
            result = self.by_distance(values, distance)
        elif mode == "coordinates":
            result = self.by_coordinates(values, coordinates)
        else:
            result = self.by_positions(values, positions)

        if squeeze:
            result.values = result.values[:, 0]
        return result

    @staticmethod
    def _is_single_column(nal: Any) -> bool:
        if isinstance(nal, AffineGrid):
            return True
        if isinstance(nal, NodeAttributeList):
            return nal.values.ndim == 1
        if isinstance(nal, (list, tuple)) and any(
            isinstance(s, (AffineGrid, NodeAttributeList, np.ndarray)) for s in nal
        ):
            return False
        return np.ndim(nal) == 1

    def by_distance(self, values: NDArray[Any], distance: ArrayLike) -> QueryResult:
        """Interpolate ``values`` (``(n_nodes, m)``) at distances from the outlet."""
        n_heads = self.network.n_channel_heads
        if n_heads != 1:
            raise UnsupportedTopology(
                f"The stream network must be a single stream, but it has {n_heads} "
                "channel heads. Isolate a single path first, e.g. with "
                "StreamNetwork.trunk().",
                n_channel_heads=n_heads,
            )

        samples = self.network.flatten(values)
        # drop the separator that closes the path
        d = samples.distance[:-1]
        v = samples.values[0][:-1]

        order = np.argsort(d, kind="stable")
        d = d[order]
        v = v[order]

        query = np.asarray(distance, dtype=np.float64).ravel()
        out = np.empty((query.size, v.shape[1]), dtype=np.float64)
        for j in range(v.shape[1]):
            out[:, j] = np.interp(query, d, v[:, j], left=np.nan, right=np.nan)
        return QueryResult(values=out, mode="distance")

    def by_coordinates(self, values: NDArray[Any], coordinates: Any) -> QueryResult:
        """Values at the network nodes nearest to ``coordinates``."""
        x, y = _coordinate_pairs(coordinates)
        snap = self.network.snap(x, y)
        # match on grid position, not on snap index
        index = self.network.index_of(snap.positions)
        out = values[index]

        diagnostics: list[str] = []
        tolerance = self.config.snap_tolerance(self.network.cell_size)
        if np.any(snap.residuals > tolerance):
            msg = (
                "Some of the coordinates are not located on nodes of the stream "
                f"network. The maximum snap distance is {snap.max_residual:g}."
            )
            logger.warning(msg)
            diagnostics.append(msg)
        return QueryResult(values=out, mode="coordinates", diagnostics=diagnostics, snap=snap)

    def by_positions(self, values: NDArray[Any], positions: ArrayLike) -> QueryResult:
        """Values at grid ``positions``; NaN where a position is not a node."""
        index = self.network.index_of(positions)
        found = index != NOT_IN_NETWORK
        out = np.full((index.size, values.shape[1]), np.nan, dtype=np.float64)
        out[found] = values[index[found]]
        if not np.all(found):
            logger.debug("%d of %d positions are not network nodes", int((~found).sum()), index.size)
        return QueryResult(values=out, mode="positions")


def get_value(
    network: StreamNetwork,
    nal: AttributeSource | list[AttributeSource],
    *,
    distance: ArrayLike | None = None,
    coordinates: ArrayLike | tuple[ArrayLike, ArrayLike] | None = None,
    positions: ArrayLike | None = None,
    config: QueryConfig | None = None,
) -> NDArray[Any]:
    """
    Retrieve values from a node-attribute list.

    Shortcut for ``AttributeQuery(network, config).get_value(...).values``.
    See :meth:`AttributeQuery.get_value` for the parameters.
    """
    query = AttributeQuery(network, config)
    return query.get_value(
        nal, distance=distance, coordinates=coordinates, positions=positions
    ).values
