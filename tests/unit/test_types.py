"""Unit tests for common types (Position, WorkArea, ScreenMode)"""

import pytest
from displayadjust.common.types import AdjustmentStatus, DisplayMode, Position, ScreenMode, WorkArea


class TestPosition:
    """Test Position dataclass"""

    def test_creation(self):
        """Test Position creation"""
        pos = Position(x=100, y=200)
        assert pos.x == 100
        assert pos.y == 200

    def test_immutable(self):
        """Test Position is immutable"""
        pos = Position(x=100, y=200)
        with pytest.raises(AttributeError):
            pos.x = 300


class TestWorkArea:
    """Test WorkArea dataclass"""

    def test_center(self):
        """Test center of an offset area"""
        area = WorkArea(x=1920, y=0, width=2560, height=1440)
        assert area.center_get() == Position(x=3200, y=720)

    def test_contains_edges(self):
        """Test left/top edges are inside, right/bottom edges outside"""
        area = WorkArea(x=1920, y=0, width=2560, height=1440)
        assert area.contains(Position(x=1920, y=0)) is True
        assert area.contains(Position(x=4479, y=1439)) is True
        assert area.contains(Position(x=4480, y=0)) is False
        assert area.contains(Position(x=1919, y=100)) is False


class TestScreenMode:
    """Test ScreenMode enum"""

    def test_values(self):
        """Test CLI-facing values"""
        assert ScreenMode("windowed") is ScreenMode.WINDOWED
        assert ScreenMode("borderless") is ScreenMode.BORDERLESS
        assert ScreenMode("exclusive") is ScreenMode.EXCLUSIVE_FULLSCREEN

    def test_isFullscreen(self):
        """Test fullscreen classification"""
        assert ScreenMode.WINDOWED.isFullscreen() is False
        assert ScreenMode.BORDERLESS.isFullscreen() is True
        assert ScreenMode.EXCLUSIVE_FULLSCREEN.isFullscreen() is True


class TestValueTypes:
    """Test remaining value types"""

    def test_display_mode_equality(self):
        """Test modes compare by value"""
        assert DisplayMode(1920, 1080, 60.0) == DisplayMode(width=1920, height=1080, refresh_rate=60.0)

    def test_statuses_distinct(self):
        """Test the three outcomes are distinct"""
        assert len({status.value for status in AdjustmentStatus}) == 3
