"""Runtime configuration for network queries."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class QueryConfig:
    """Tolerances used when validating networks and snapping coordinates.

    Parameters
    ----------
    snap_epsilon : float
        Added to the snap tolerance ``sqrt(2 * cell_size)`` before a
        residual is reported as out of tolerance.
    distance_tolerance : float
        Slack allowed when checking that distance from the outlet never
        increases in the downstream direction.
    """

    snap_epsilon: float = field(default_factory=lambda: float(np.finfo(np.float64).eps))
    distance_tolerance: float = 1e-9

    def snap_tolerance(self, cell_size: float) -> float:
        """Return the residual above which a snapped coordinate is reported."""
        return float(np.sqrt(2.0 * cell_size)) + self.snap_epsilon

    @classmethod
    def from_env(cls) -> QueryConfig:
        """Create config from environment variables.

        Reads ``PYTOPOGRID_SNAP_EPSILON`` and
        ``PYTOPOGRID_DISTANCE_TOLERANCE``; unset variables keep defaults.
        """
        kwargs: dict[str, float] = {}
        snap_eps = os.environ.get("PYTOPOGRID_SNAP_EPSILON")
        if snap_eps:
            kwargs["snap_epsilon"] = float(snap_eps)
        dist_tol = os.environ.get("PYTOPOGRID_DISTANCE_TOLERANCE")
        if dist_tol:
            kwargs["distance_tolerance"] = float(dist_tol)
        return cls(**kwargs)


DEFAULT_CONFIG = QueryConfig()
