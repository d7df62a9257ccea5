"""
pytopogrid - spatial indexing core for terrain analysis.

This package provides tools for:
- Georeferenced raster grids with affine transforms
- Cropping grids by masks, positions, extents or coordinates
- Stream networks over grid cells
- Querying node attributes by distance, coordinates or grid position
"""

from __future__ import annotations

__version__ = "0.1.0"

from pytopogrid.core.attributes import NodeAttributeList, attach, get_nal, is_node_attribute_list
from pytopogrid.core.config import QueryConfig
from pytopogrid.core.exceptions import (
    GridError,
    InvalidAttributeList,
    InvalidSelection,
    NetworkError,
    PyTopoGridError,
    UnsupportedTopology,
)
from pytopogrid.core.grid import OUTSIDE, AffineGrid, Extent, GridGeometry
from pytopogrid.core.network import StreamNetwork
from pytopogrid.core.query import AttributeQuery, QueryResult, get_value
from pytopogrid.core.selection import CropResult, GridSubsetter, crop
from pytopogrid.sample_models import (
    create_sample_attribute,
    create_sample_branching_network,
    create_sample_grid,
    create_sample_stream_network,
)

__all__ = [
    "__version__",
    # Grid
    "AffineGrid",
    "GridGeometry",
    "Extent",
    "OUTSIDE",
    "GridSubsetter",
    "CropResult",
    "crop",
    # Network
    "StreamNetwork",
    "NodeAttributeList",
    "attach",
    "get_nal",
    "is_node_attribute_list",
    "AttributeQuery",
    "QueryResult",
    "get_value",
    "QueryConfig",
    # Exceptions
    "PyTopoGridError",
    "GridError",
    "InvalidSelection",
    "NetworkError",
    "UnsupportedTopology",
    "InvalidAttributeList",
    # Sample models
    "create_sample_grid",
    "create_sample_stream_network",
    "create_sample_branching_network",
    "create_sample_attribute",
]
