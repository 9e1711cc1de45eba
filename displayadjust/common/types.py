"""Common types and data structures for displayadjust"""

from dataclasses import dataclass
from enum import Enum


class ScreenMode(Enum):
    """How the application window occupies its display"""
    WINDOWED = "windowed"
    BORDERLESS = "borderless"  # Fullscreen window at the display's native size
    EXCLUSIVE_FULLSCREEN = "exclusive"  # Owns the output, may change its mode

    def isFullscreen(self) -> bool:
        """Check if this mode covers the whole display"""
        return self is not ScreenMode.WINDOWED


class AdjustmentKind(Enum):
    """Kinds of display adjustments"""
    RESOLUTION_CHANGE = "resolution_change"
    REFRESH_RATE_CHANGE = "refresh_rate_change"
    SCREEN_MODE_CHANGE = "screen_mode_change"
    DISPLAY_CHANGE = "display_change"
    ALL = "all"


class AdjustmentStatus(Enum):
    """Outcome reported once per completed adjustment"""
    FAIL = "fail"
    SUCCESS = "success"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Position:
    """2D position coordinates"""
    x: int
    y: int


@dataclass(frozen=True)
class WorkArea:
    """Usable rectangle of a display in root-window coordinates"""
    x: int
    y: int
    width: int
    height: int

    def center_get(self) -> Position:
        """Return the center point of the area"""
        return Position(x=self.x + self.width // 2, y=self.y + self.height // 2)

    def contains(self, pos: Position) -> bool:
        """Check if position lies inside the area"""
        return self.x <= pos.x < self.x + self.width and self.y <= pos.y < self.y + self.height


@dataclass(frozen=True)
class DisplayInfo:
    """One physical display as reported by the backend"""
    index: int
    name: str
    width: int
    height: int
    work_area: WorkArea


@dataclass(frozen=True)
class DisplayMode:
    """Raw mode record: dimensions plus refresh rate in Hz"""
    width: int
    height: int
    refresh_rate: float
