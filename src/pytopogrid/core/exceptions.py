"""Custom exceptions for pytopogrid package."""

from __future__ import annotations


class PyTopoGridError(Exception):
    """Base exception for all pytopogrid errors."""

    pass


class GridError(PyTopoGridError):
    """Error related to grid construction or alignment."""

    pass


class InvalidSelection(GridError):
    """Error raised when a crop selection is empty, too small or out of bounds."""

    pass


class NetworkError(PyTopoGridError):
    """Error raised when a stream network violates its structural invariants."""

    pass


class UnsupportedTopology(NetworkError):
    """Error raised when an operation needs a network shape it does not have."""

    def __init__(self, message: str, n_channel_heads: int | None = None) -> None:
        super().__init__(message)
        self.n_channel_heads = n_channel_heads


class InvalidAttributeList(PyTopoGridError):
    """Error raised when values cannot serve as a node-attribute list."""

    def __init__(
        self, message: str, expected: int | None = None, actual: int | None = None
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
