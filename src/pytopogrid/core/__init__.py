"""Core data structures for pytopogrid."""

from __future__ import annotations

from pytopogrid.core.attributes import (
    NodeAttributeList,
    attach,
    get_nal,
    is_node_attribute_list,
)
from pytopogrid.core.config import DEFAULT_CONFIG, QueryConfig
from pytopogrid.core.exceptions import (
    GridError,
    InvalidAttributeList,
    InvalidSelection,
    NetworkError,
    PyTopoGridError,
    UnsupportedTopology,
)
from pytopogrid.core.grid import OUTSIDE, AffineGrid, Extent, GridGeometry
from pytopogrid.core.network import NetworkSamples, SnapResult, StreamNetwork
from pytopogrid.core.query import AttributeQuery, QueryResult, get_value
from pytopogrid.core.selection import (
    CoordinateSelection,
    CropResult,
    ExtentSelection,
    GridSubsetter,
    MaskSelection,
    PositionSelection,
    ValidCells,
    as_selection,
    crop,
)

__all__ = [
    # Grid
    "AffineGrid",
    "GridGeometry",
    "Extent",
    "OUTSIDE",
    # Cropping
    "GridSubsetter",
    "CropResult",
    "crop",
    "as_selection",
    "ValidCells",
    "MaskSelection",
    "PositionSelection",
    "ExtentSelection",
    "CoordinateSelection",
    # Network
    "StreamNetwork",
    "NetworkSamples",
    "SnapResult",
    # Attributes and queries
    "NodeAttributeList",
    "attach",
    "get_nal",
    "is_node_attribute_list",
    "AttributeQuery",
    "QueryResult",
    "get_value",
    # Configuration
    "QueryConfig",
    "DEFAULT_CONFIG",
    # Exceptions
    "PyTopoGridError",
    "GridError",
    "InvalidSelection",
    "NetworkError",
    "UnsupportedTopology",
    "InvalidAttributeList",
]
