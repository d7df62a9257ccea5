"""
Node-attribute lists.

A node-attribute list holds one value (or one row of values) per node of a
:class:`~pytopogrid.core.network.StreamNetwork`, aligned by position with
``network.node_positions``. It is the form in which per-node data such as
elevation, upstream area or gradient is attached to a network.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pytopogrid.core.exceptions import InvalidAttributeList
from pytopogrid.core.grid import AffineGrid
from pytopogrid.core.network import StreamNetwork

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


def is_node_attribute_list(network: StreamNetwork, values: Any) -> bool:
    """
    Return True if ``values`` is a valid node-attribute list for ``network``.

    A valid list is a numeric (or boolean) array whose first dimension
    equals the number of network nodes.
    """
    if isinstance(values, NodeAttributeList):
        return values.network is network
    arr = np.asarray(values)
    if arr.ndim not in (1, 2):
        return False
    if not (np.issubdtype(arr.dtype, np.number) or arr.dtype == np.bool_):
        return False
    return arr.shape[0] == network.n_nodes


@dataclass(frozen=True, eq=False)
class NodeAttributeList:
    """
    Values attached to the nodes of a stream network.

    Parameters
    ----------
    network : StreamNetwork
        Network whose node order the values follow.
    values : NDArray
        Shape ``(n_nodes,)`` or ``(n_nodes, m)`` for ``m`` attributes.
    name : str, optional
        Descriptive name.

    Raises
    ------
    InvalidAttributeList
        If ``values`` is not numeric or its length differs from the node
        count.

    Examples
    --------
    >>> nal = NodeAttributeList(network, [100.0, 200.0, 300.0])  # doctest: +SKIP
    >>> nal.n_columns  # doctest: +SKIP
    1
    """

    network: StreamNetwork
    values: NDArray[Any]
    name: str = ""

    def __post_init__(self) -> None:
        arr = np.array(self.values, copy=True)
        if not is_node_attribute_list(self.network, arr):
            raise InvalidAttributeList(
                f"Values of shape {arr.shape} and dtype {arr.dtype} are not a valid "
                f"node-attribute list for a network with {self.network.n_nodes} nodes",
                expected=self.network.n_nodes,
                actual=arr.shape[0] if arr.ndim else None,
            )
        arr.setflags(write=False)
        object.__setattr__(self, "values", arr)

    @classmethod
    def from_grid(cls, network: StreamNetwork, grid: AffineGrid, name: str = "") -> NodeAttributeList:
        """
        Read the cell values of ``grid`` at the network nodes.

        Raises
        ------
        InvalidAttributeList
            If ``grid`` is not aligned with the grid the network was built on.
        """
        if not grid.is_aligned(network.geometry):
            raise InvalidAttributeList(
                f"Grid of shape {grid.shape} is not aligned with the network's grid "
                f"of shape {network.geometry.shape}"
            )
        values = grid.values.ravel()[network.node_positions]
        return cls(network=network, values=values, name=name or grid.name)

    @classmethod
    def distance(cls, network: StreamNetwork) -> NodeAttributeList:
        """The network's distance from the outlet as a node-attribute list."""
        return cls(network=network, values=network.distance, name="distance")

    @property
    def n_columns(self) -> int:
        return 1 if self.values.ndim == 1 else int(self.values.shape[1])

    @property
    def columns(self) -> NDArray[Any]:
        """Values as a ``(n_nodes, n_columns)`` array."""
        return self.values.reshape(self.network.n_nodes, -1)

    def column(self, index: int) -> NDArray[Any]:
        return self.columns[:, index]

    def to_dataframe(self) -> pd.DataFrame:
        """
        Return the list as a DataFrame with one row per node.

        Columns are ``position``, ``x``, ``y``, ``distance`` and one column
        per attribute (named after the list, with ``_<i>`` suffixes when
        there are several).
        """
        import pandas as pd

        x, y = self.network.xy()
        data: dict[str, Any] = {
            "position": self.network.node_positions,
            "x": x,
            "y": y,
            "distance": self.network.distance,
        }
        base = self.name or "value"
        if self.n_columns == 1:
            data[base] = self.columns[:, 0]
        else:
            for i in range(self.n_columns):
                data[f"{base}_{i}"] = self.columns[:, i]
        return pd.DataFrame(data)

    def __len__(self) -> int:
        return int(self.values.shape[0])

    def __repr__(self) -> str:
        return f"NodeAttributeList(name={self.name!r}, n_nodes={len(self)}, n_columns={self.n_columns})"


AttributeSource = Union[NodeAttributeList, AffineGrid, ArrayLike]


def attach(network: StreamNetwork, values: ArrayLike, name: str = "") -> NodeAttributeList:
    """Attach per-node values to ``network``."""
    return NodeAttributeList(network=network, values=values, name=name)


def _as_columns(network: StreamNetwork, source: Any) -> NDArray[Any]:
    if isinstance(source, NodeAttributeList):
        if source.network is not network:
            raise InvalidAttributeList("Node-attribute list belongs to a different network")
        return source.columns
    if isinstance(source, AffineGrid):
        return NodeAttributeList.from_grid(network, source).columns
    arr = np.asarray(source)
    if arr.ndim == 1:
        return arr.reshape(-1, 1)
    return arr


def get_nal(network: StreamNetwork, source: AttributeSource | Sequence[AttributeSource]) -> NDArray[Any]:
    """
    Normalise attribute input to an ``(n_nodes, m)`` array.

    Parameters
    ----------
    network : StreamNetwork
        Network the values belong to.
    source : array-like, NodeAttributeList, AffineGrid, or list of these
        A list is stacked column-wise after each element has been aligned
        to the network; grids are read at the node positions.

    Returns
    -------
    NDArray
        Two-dimensional values array. Its validity is not checked here.
    """
    if isinstance(source, (list, tuple)) and any(
        isinstance(s, (AffineGrid, NodeAttributeList, np.ndarray)) for s in source
    ):
        columns = [_as_columns(network, s) for s in source]
        lengths = {c.shape[0] for c in columns}
        if len(lengths) != 1:
            raise InvalidAttributeList(
                f"Attributes have different lengths: {sorted(lengths)}",
                expected=network.n_nodes,
            )
        return np.hstack(columns)
    return _as_columns(network, source)
