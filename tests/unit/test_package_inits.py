"""Tests for package __init__ modules to ensure imports work correctly.

Tests:
- pytopogrid/__init__.py
- pytopogrid/core/__init__.py
"""

from __future__ import annotations


class TestTopLevelInit:
    """Tests for the top-level package init."""

    def test_version(self) -> None:
        import pytopogrid

        assert pytopogrid.__version__ == "0.1.0"

    def test_all_names_resolve(self) -> None:
        import pytopogrid

        for name in pytopogrid.__all__:
            assert hasattr(pytopogrid, name), name

    def test_all_contains_expected_names(self) -> None:
        from pytopogrid import __all__

        assert "crop" in __all__
        assert "get_value" in __all__
        assert "StreamNetwork" in __all__


class TestCoreInit:
    """Tests for core package init."""

    def test_all_names_resolve(self) -> None:
        import pytopogrid.core

        for name in pytopogrid.core.__all__:
            assert hasattr(pytopogrid.core, name), name

    def test_same_objects_as_top_level(self) -> None:
        import pytopogrid
        import pytopogrid.core

        assert pytopogrid.AffineGrid is pytopogrid.core.AffineGrid
        assert pytopogrid.get_value is pytopogrid.core.get_value
