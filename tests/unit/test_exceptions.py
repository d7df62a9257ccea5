"""Unit tests for pytopogrid custom exceptions (core/exceptions.py)."""

from __future__ import annotations

import pytest

from pytopogrid.core.exceptions import (
    GridError,
    InvalidAttributeList,
    InvalidSelection,
    NetworkError,
    PyTopoGridError,
    UnsupportedTopology,
)


class TestExceptionHierarchy:
    """Tests for the exception class hierarchy."""

    def test_base_is_exception(self) -> None:
        assert issubclass(PyTopoGridError, Exception)

    def test_grid_errors(self) -> None:
        assert issubclass(GridError, PyTopoGridError)
        assert issubclass(InvalidSelection, GridError)

    def test_network_errors(self) -> None:
        assert issubclass(NetworkError, PyTopoGridError)
        assert issubclass(UnsupportedTopology, NetworkError)

    def test_attribute_error(self) -> None:
        assert issubclass(InvalidAttributeList, PyTopoGridError)
        assert not issubclass(InvalidAttributeList, NetworkError)


class TestExceptionInstantiation:
    """Tests for exception creation and attributes."""

    def test_message(self) -> None:
        exc = InvalidSelection("empty mask")
        assert str(exc) == "empty mask"

    def test_unsupported_topology(self) -> None:
        exc = UnsupportedTopology("two heads", n_channel_heads=2)

        assert str(exc) == "two heads"
        assert exc.n_channel_heads == 2

    def test_invalid_attribute_list(self) -> None:
        exc = InvalidAttributeList("bad length", expected=10, actual=4)

        assert exc.expected == 10
        assert exc.actual == 4

    def test_invalid_attribute_list_defaults(self) -> None:
        exc = InvalidAttributeList("bad")

        assert exc.expected is None
        assert exc.actual is None

    def test_catch_with_base_class(self) -> None:
        with pytest.raises(PyTopoGridError):
            raise UnsupportedTopology("no heads", n_channel_heads=0)
