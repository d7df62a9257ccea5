"""
Stream networks on raster grids.

A :class:`StreamNetwork` is an ordered list of grid cells (nodes). Every node
drains to at most one downstream node (its *receiver*), so the network is a
forest of trees rooted at the outlets. The node order is the one ordering
that all node-attribute lists of the network share.

The network is normally produced by a flow-routing stage outside this
package. :meth:`StreamNetwork.from_receivers` computes the distance from the
outlet for callers that only have the node positions and receivers.

Example
-------
>>> import numpy as np
>>> from pytopogrid.core.grid import GridGeometry
>>> from pytopogrid.core.network import StreamNetwork
>>> geom = GridGeometry.from_origin(0.0, 0.0, 1.0, (1, 3))
>>> net = StreamNetwork.from_receivers(geom, [0, 1, 2], [1, 2, -1])
>>> net.distance.tolist()
[2.0, 1.0, 0.0]
>>> net.n_channel_heads
1
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial import cKDTree

from pytopogrid.core.config import DEFAULT_CONFIG
from pytopogrid.core.exceptions import NetworkError
from pytopogrid.core.grid import GridGeometry

logger = logging.getLogger(__name__)

NO_RECEIVER = -1
NOT_IN_NETWORK = -1


def _readonly(arr: NDArray[Any]) -> NDArray[Any]:
    arr = np.array(arr, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass
class NetworkSamples:
    """
    Network nodes laid out as head-to-outlet paths.

    Each path starts at a channel head and follows receivers downstream
    until it reaches an outlet or a node already emitted by an earlier path
    (that node is repeated so the paths connect). Every path ends with one
    separator sample: NaN in the float arrays, ``-1`` in ``nodes``.

    Attributes
    ----------
    nodes : NDArray[np.int64]
        Network index of each sample.
    x, y : NDArray[np.float64]
        World coordinates of each sample.
    distance : NDArray[np.float64]
        Distance from the outlet of each sample.
    values : list of NDArray
        One float array per requested attribute, shape ``(n_samples,)`` or
        ``(n_samples, m)``.
    """

    nodes: NDArray[np.int64]
    x: NDArray[np.float64]
    y: NDArray[np.float64]
    distance: NDArray[np.float64]
    values: list[NDArray[np.float64]] = field(default_factory=list)

    @property
    def n_samples(self) -> int:
        return len(self.nodes)


@dataclass
class SnapResult:
    """
    Nearest network nodes to a set of query coordinates.

    Attributes
    ----------
    x, y : NDArray[np.float64]
        Coordinates of the snapped nodes.
    positions : NDArray[np.int64]
        Grid linear positions of the snapped nodes.
    indices : NDArray[np.int64]
        Network indices of the snapped nodes.
    residuals : NDArray[np.float64]
        Euclidean distance between each query coordinate and its node.
    """

    x: NDArray[np.float64]
    y: NDArray[np.float64]
    positions: NDArray[np.int64]
    indices: NDArray[np.int64]
    residuals: NDArray[np.float64]

    @property
    def max_residual(self) -> float:
        if self.residuals.size == 0:
            return 0.0
        return float(self.residuals.max())


@dataclass(frozen=True, eq=False)
class StreamNetwork:
    """
    Directed stream network over cells of a grid.

    Parameters
    ----------
    node_positions : array-like of int
        Row-major linear positions of the nodes in the originating grid.
        Unique.
    receivers : array-like of int
        Network index of the downstream node of each node, or
        ``NO_RECEIVER`` (-1) at outlets.
    distance : array-like of float
        Distance of each node from its outlet, measured along the network.
        Never increases in the downstream direction.
    geometry : GridGeometry
        Geometry of the originating grid.

    Raises
    ------
    NetworkError
        If the arrays disagree in length, positions repeat or fall outside
        the grid, receivers are invalid or form a cycle, or distance grows
        downstream.
    """

    node_positions: NDArray[np.int64]
    receivers: NDArray[np.int64]
    distance: NDArray[np.float64]
    geometry: GridGeometry

    def __post_init__(self) -> None:
        positions = np.asarray(self.node_positions).ravel()
        if positions.size and not np.issubdtype(positions.dtype, np.integer):
            raise NetworkError("node_positions must be integers")
        object.__setattr__(self, "node_positions", _readonly(positions.astype(np.int64)))
        object.__setattr__(
            self, "receivers", _readonly(np.asarray(self.receivers).ravel().astype(np.int64))
        )
        object.__setattr__(
            self, "distance", _readonly(np.asarray(self.distance, dtype=np.float64).ravel())
        )
        self._validate(DEFAULT_CONFIG.distance_tolerance)

    def _validate(self, tolerance: float) -> None:
        n = self.node_positions.size
        if self.receivers.size != n or self.distance.size != n:
            raise NetworkError(
                f"node_positions ({n}), receivers ({self.receivers.size}) and "
                f"distance ({self.distance.size}) must have the same length"
            )
        if n == 0:
            return
        if np.unique(self.node_positions).size != n:
            raise NetworkError("node_positions must be unique")
        if self.node_positions.min() < 0 or self.node_positions.max() >= self.geometry.size:
            raise NetworkError(
                f"node_positions must range between 0 and {self.geometry.size - 1}"
            )
        if np.any(self.receivers < NO_RECEIVER) or np.any(self.receivers >= n):
            raise NetworkError("receivers must be network indices or -1")
        if np.any(self.receivers == np.arange(n)):
            raise NetworkError("A node cannot be its own receiver")
        if not np.all(np.isfinite(self.distance)):
            raise NetworkError("distance must be finite")

        # raises on cycles
        self.topological_order()

        has_receiver = self.receivers != NO_RECEIVER
        donors = np.flatnonzero(has_receiver)
        increase = self.distance[self.receivers[donors]] - self.distance[donors]
        if np.any(increase > tolerance):
            worst = donors[np.argmax(increase)]
            raise NetworkError(
                f"distance increases downstream of node {worst} "
                f"(position {self.node_positions[worst]})"
            )

    @classmethod
    def from_receivers(
        cls,
        geometry: GridGeometry,
        node_positions: ArrayLike,
        receivers: ArrayLike,
    ) -> StreamNetwork:
        """
        Build a network and compute its distance from the outlet.

        Distance is the cumulative Euclidean length of the straight segments
        between node centres, measured upstream from each outlet.

        Parameters
        ----------
        geometry : GridGeometry
            Geometry of the originating grid.
        node_positions : array-like of int
            Linear grid positions of the nodes.
        receivers : array-like of int
            Downstream node index per node, -1 at outlets.
        """
        positions = np.asarray(node_positions, dtype=np.int64).ravel()
        recv = np.asarray(receivers, dtype=np.int64).ravel()
        # validate structure before walking it
        placeholder = cls(
            node_positions=positions,
            receivers=recv,
            distance=np.zeros(positions.size),
            geometry=geometry,
        )
        x, y = placeholder.xy()
        distance = np.zeros(positions.size, dtype=np.float64)
        for i in placeholder.topological_order()[::-1]:
            r = recv[i]
            if r != NO_RECEIVER:
                distance[i] = distance[r] + np.hypot(x[i] - x[r], y[i] - y[r])
        return cls(node_positions=positions, receivers=recv, distance=distance, geometry=geometry)

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    @property
    def n_nodes(self) -> int:
        """Number of nodes."""
        return int(self.node_positions.size)

    @property
    def cell_size(self) -> float:
        """Cell size of the originating grid."""
        return self.geometry.cell_size

    def donor_counts(self) -> NDArray[np.int64]:
        """Number of upstream nodes draining directly into each node."""
        recv = self.receivers[self.receivers != NO_RECEIVER]
        return np.bincount(recv, minlength=self.n_nodes).astype(np.int64)

    def topological_order(self) -> NDArray[np.int64]:
        """
        Return node indices ordered so that every node precedes its receiver.

        Raises
        ------
        NetworkError
            If the receivers contain a cycle.
        """
        indegree = self.donor_counts()
        queue = deque(np.flatnonzero(indegree == 0).tolist())
        order: list[int] = []
        while queue:
            i = queue.popleft()
            order.append(i)
            r = self.receivers[i]
            if r != NO_RECEIVER:
                indegree[r] -= 1
                if indegree[r] == 0:
                    queue.append(int(r))
        if len(order) != self.n_nodes:
            raise NetworkError("receivers contain a cycle")
        return np.asarray(order, dtype=np.int64)

    def channel_heads(self) -> NDArray[np.int64]:
        """Indices of nodes without upstream donors."""
        return np.flatnonzero(self.donor_counts() == 0).astype(np.int64)

    def outlets(self) -> NDArray[np.int64]:
        """Indices of nodes without a receiver."""
        return np.flatnonzero(self.receivers == NO_RECEIVER).astype(np.int64)

    @property
    def n_channel_heads(self) -> int:
        return int(self.channel_heads().size)

    @property
    def n_outlets(self) -> int:
        return int(self.outlets().size)

    def downstream_path(self, start: int) -> NDArray[np.int64]:
        """Network indices from ``start`` down to its outlet."""
        path = [int(start)]
        while self.receivers[path[-1]] != NO_RECEIVER:
            path.append(int(self.receivers[path[-1]]))
        return np.asarray(path, dtype=np.int64)

    # ------------------------------------------------------------------
    # Coordinates and lookup
    # ------------------------------------------------------------------

    def xy(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """World coordinates of the node cell centres."""
        return self._xy

    @cached_property
    def _xy(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        if self.n_nodes == 0:
            return np.empty(0), np.empty(0)
        x, y = self.geometry.position_to_coordinate(self.node_positions)
        return np.atleast_1d(np.asarray(x, dtype=np.float64)), np.atleast_1d(
            np.asarray(y, dtype=np.float64)
        )

    @cached_property
    def _position_lookup(self) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        order = np.argsort(self.node_positions, kind="stable")
        return self.node_positions[order], order

    @cached_property
    def _kdtree(self) -> cKDTree:
        x, y = self.xy()
        return cKDTree(np.column_stack([x, y]))

    def index_of(self, positions: ArrayLike) -> NDArray[np.int64]:
        """
        Network index of each grid position.

        Positions that are not network nodes map to ``NOT_IN_NETWORK`` (-1).
        The output follows the order of ``positions``.
        """
        query = np.asarray(positions).ravel()
        result = np.full(query.size, NOT_IN_NETWORK, dtype=np.int64)
        if self.n_nodes == 0 or query.size == 0:
            return result
        sorted_pos, order = self._position_lookup
        if np.issubdtype(query.dtype, np.floating):
            valid = np.isfinite(query)
            valid[valid] = query[valid] == np.round(query[valid])
        else:
            valid = np.ones(query.size, dtype=bool)
        q = np.where(valid, query, -1).astype(np.int64)
        loc = np.clip(np.searchsorted(sorted_pos, q), 0, self.n_nodes - 1)
        found = valid & (sorted_pos[loc] == q)
        result[found] = order[loc[found]]
        return result

    def snap(self, x: ArrayLike, y: ArrayLike) -> SnapResult:
        """
        Find the nearest network node to each coordinate.

        Parameters
        ----------
        x, y : array-like of float
            Query coordinates.

        Returns
        -------
        SnapResult
            Snapped nodes and residual distances, in query order.
        """
        qx = np.asarray(x, dtype=np.float64).ravel()
        qy = np.asarray(y, dtype=np.float64).ravel()
        if qx.shape != qy.shape:
            raise ValueError("x and y must have the same length")
        if self.n_nodes == 0:
            raise NetworkError("Cannot snap to an empty network")
        residuals, indices = self._kdtree.query(np.column_stack([qx, qy]))
        indices = np.asarray(indices, dtype=np.int64)
        nx, ny = self.xy()
        return SnapResult(
            x=nx[indices],
            y=ny[indices],
            positions=self.node_positions[indices],
            indices=indices,
            residuals=np.asarray(residuals, dtype=np.float64),
        )

    # ------------------------------------------------------------------
    # Path layout
    # ------------------------------------------------------------------

    def flatten(self, *attributes: ArrayLike) -> NetworkSamples:
        """
        Lay the network out as head-to-outlet paths.

        Parameters
        ----------
        *attributes : array-like
            Arrays of length ``n_nodes`` (1-D or 2-D) to carry along.

        Returns
        -------
        NetworkSamples
            Samples ordered head to outlet, one NaN separator after each
            path.
        """
        arrays = []
        for attr in attributes:
            arr = np.asarray(attr)
            if arr.shape[:1] != (self.n_nodes,):
                raise ValueError(
                    f"Attribute length {arr.shape[:1]} does not match {self.n_nodes} nodes"
                )
            arrays.append(arr.astype(np.float64))

        visited = np.zeros(self.n_nodes, dtype=bool)
        samples: list[int] = []
        heads = self.channel_heads()
        # longest paths first, so the main stem is laid out unbroken
        heads = heads[np.argsort(-self.distance[heads], kind="stable")]
        for head in heads:
            node = int(head)
            while True:
                samples.append(node)
                if visited[node]:
                    break
                visited[node] = True
                r = int(self.receivers[node])
                if r == NO_RECEIVER:
                    break
                node = r
            samples.append(NOT_IN_NETWORK)

        nodes = np.asarray(samples, dtype=np.int64)
        sep = nodes == NOT_IN_NETWORK
        take = np.where(sep, 0, nodes)
        nx, ny = self.xy()

        def gather(arr: NDArray[np.float64]) -> NDArray[np.float64]:
            if self.n_nodes == 0:
                return np.empty((0,) + arr.shape[1:])
            out = arr[take].copy()
            out[sep] = np.nan
            return out

        return NetworkSamples(
            nodes=nodes,
            x=gather(nx),
            y=gather(ny),
            distance=gather(self.distance),
            values=[gather(a) for a in arrays],
        )

    # ------------------------------------------------------------------
    # Derived networks
    # ------------------------------------------------------------------

    def subnetwork(self, keep: ArrayLike) -> StreamNetwork:
        """
        Return the network restricted to the nodes selected by ``keep``.

        ``keep`` is a boolean array over nodes or an array of node indices.
        Node order is preserved. Nodes whose receiver is dropped become
        outlets; distance values are carried over unchanged.
        """
        keep_arr = np.asarray(keep)
        if keep_arr.dtype == np.bool_:
            if keep_arr.shape != (self.n_nodes,):
                raise ValueError("Boolean keep array must have one entry per node")
            mask = keep_arr
        else:
            mask = np.zeros(self.n_nodes, dtype=bool)
            mask[keep_arr.astype(np.int64)] = True

        new_index = np.full(self.n_nodes, NO_RECEIVER, dtype=np.int64)
        new_index[mask] = np.arange(int(mask.sum()))
        recv = self.receivers[mask]
        new_recv = np.where(recv == NO_RECEIVER, NO_RECEIVER, new_index[np.maximum(recv, 0)])
        return StreamNetwork(
            node_positions=self.node_positions[mask],
            receivers=new_recv,
            distance=self.distance[mask],
            geometry=self.geometry,
        )

    def trunk(self) -> StreamNetwork:
        """
        Return the single path from the most distant channel head to its outlet.

        Use this to isolate one river before querying by distance.
        """
        if self.n_nodes == 0:
            return self
        heads = self.channel_heads()
        head = heads[np.argmax(self.distance[heads])]
        logger.debug("Extracting trunk from head %d (distance %.3f)", head, self.distance[head])
        return self.subnetwork(self.downstream_path(int(head)))

    def reorder(self, order: ArrayLike) -> StreamNetwork:
        """
        Return a network with nodes permuted so that new node ``i`` is old
        node ``order[i]``.

        Node-attribute lists of this network are not valid for the result.
        """
        perm = np.asarray(order, dtype=np.int64).ravel()
        if perm.size != self.n_nodes or not np.array_equal(np.sort(perm), np.arange(self.n_nodes)):
            raise ValueError("order must be a permutation of the node indices")
        inverse = np.empty_like(perm)
        inverse[perm] = np.arange(self.n_nodes)
        recv = self.receivers[perm]
        new_recv = np.where(recv == NO_RECEIVER, NO_RECEIVER, inverse[np.maximum(recv, 0)])
        return StreamNetwork(
            node_positions=self.node_positions[perm],
            receivers=new_recv,
            distance=self.distance[perm],
            geometry=self.geometry,
        )

    def __len__(self) -> int:
        return self.n_nodes

    def __repr__(self) -> str:
        return (
            f"StreamNetwork(n_nodes={self.n_nodes}, "
            f"n_channel_heads={self.n_channel_heads}, cell_size={self.cell_size})"
        )
