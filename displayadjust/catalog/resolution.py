"""Resolution and refresh-rate catalog entries"""

from __future__ import annotations

from dataclasses import dataclass, field

from displayadjust.catalog.registry import sortedItem_insertOrGet
from displayadjust.common.settings import settings


def resolution_encode(width: int, height: int) -> int:
    """
    Encode a resolution into a unique, sortable integer id

    Wider resolutions sort higher; equal widths sort by height. Width and
    height must each be below 65536 to round-trip.

    Args:
        width: Resolution width in pixels
        height: Resolution height in pixels

    Returns:
        Encoded resolution id
    """
    return (width << settings.RESOLUTION_BIT_SHIFT) | height


def resolution_decode(resolution_id: int) -> tuple[int, int]:
    """
    Decode a resolution id into (width, height)

    Args:
        resolution_id: Id produced by resolution_encode()

    Returns:
        Tuple of (width, height)
    """
    width = resolution_id >> settings.RESOLUTION_BIT_SHIFT
    height = resolution_id & settings.RESOLUTION_LOWER_BITS_MASK
    return width, height


@dataclass(frozen=True)
class RefreshRateInfo:
    """Refresh rate entry, compared by its value in Hz"""
    value: float

    def comparableValue_get(self) -> float:
        """Return the sort/lookup key"""
        return self.value


@dataclass
class ResolutionInfo:
    """A detected resolution and the refresh rates it supports"""
    resolution_id: int
    width: int
    height: int
    refresh_rates: list[RefreshRateInfo] = field(default_factory=list)

    @classmethod
    def create(cls, width: int, height: int, refresh_rate: float) -> "ResolutionInfo":
        """
        Create a resolution entry seeded with one refresh rate

        Args:
            width: Resolution width in pixels
            height: Resolution height in pixels
            refresh_rate: First known refresh rate in Hz

        Returns:
            New resolution entry
        """
        return cls(
            resolution_id=resolution_encode(width, height),
            width=width,
            height=height,
            refresh_rates=[RefreshRateInfo(value=refresh_rate)],
        )

    def refreshRate_add(self, refresh_rate: float) -> int:
        """
        Add a refresh rate, keeping the list sorted and duplicate-free

        Args:
            refresh_rate: Refresh rate in Hz

        Returns:
            Index of the rate in refresh_rates
        """
        index, _ = sortedItem_insertOrGet(
            self.refresh_rates, refresh_rate, lambda: RefreshRateInfo(value=refresh_rate)
        )
        return index

    def comparableValue_get(self) -> int:
        """Return the sort/lookup key"""
        return self.resolution_id

    def label_get(self) -> str:
        """Return the `WIDTHxHEIGHT` label"""
        return f"{self.width}x{self.height}"
