"""Display settings value and its three-snapshot storage"""

from __future__ import annotations

from dataclasses import dataclass

from displayadjust.common.types import ScreenMode


@dataclass
class DisplaySettings:
    """Everything needed to reproduce a display configuration"""
    display_index: int = 0
    resolution_id: int = 0
    refresh_rate_index: int = 0
    screen_mode: ScreenMode = ScreenMode.WINDOWED

    def copy_from(self, other: "DisplaySettings") -> "DisplaySettings":
        """
        Overwrite every field with the values of another instance

        Args:
            other: Source settings

        Returns:
            This instance, for chaining
        """
        self.display_index = other.display_index
        self.resolution_id = other.resolution_id
        self.refresh_rate_index = other.refresh_rate_index
        self.screen_mode = other.screen_mode
        return self


class DisplaySettingsStorage:
    """
    Holds the default, last confirmed and temporary display settings.

    The three snapshots are separate instances and only ever change through
    whole-value copies, so no two of them alias each other.
    """

    def __init__(self) -> None:
        """Create three independent snapshots"""
        self._default: DisplaySettings = DisplaySettings()
        self._last: DisplaySettings = DisplaySettings()
        self._temp: DisplaySettings = DisplaySettings()

    @property
    def default(self) -> DisplaySettings:
        """Settings captured at first activation"""
        return self._default

    @property
    def last(self) -> DisplaySettings:
        """Last user-confirmed settings"""
        return self._last

    @property
    def temp(self) -> DisplaySettings:
        """In-progress, possibly unconfirmed settings"""
        return self._temp

    def settings_copy(self, source: DisplaySettings, destination: DisplaySettings) -> DisplaySettings:
        """Copy source into destination and return destination"""
        return destination.copy_from(source)

    def settings_captureAll(self, current: DisplaySettings) -> None:
        """Set all three snapshots to the same current settings"""
        for snapshot in (self._default, self._last, self._temp):
            snapshot.copy_from(current)
