"""
Resolution catalog and display list.

The catalog is rebuilt wholesale from the backend's raw mode list each time
the display set may have changed (construction, end of every notifying
adjustment). Between rebuilds it is read-only.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from displayadjust.catalog.registry import sortedItem_insertOrGet
from displayadjust.catalog.resolution import (
    RefreshRateInfo,
    ResolutionInfo,
    resolution_encode,
)
from displayadjust.common.settings import settings
from displayadjust.common.types import DisplayInfo, DisplayMode, WorkArea

logger = logging.getLogger(__name__)

__all__ = ["ResolutionCatalog"]


class ResolutionCatalog:
    """Sorted resolutions with refresh rates, an id index, and known displays"""

    def __init__(self) -> None:
        """Create an empty catalog"""
        self._resolutions: list[ResolutionInfo] = []
        self._lookup: dict[int, int] = {}
        self._displays: list[DisplayInfo] = []

    @property
    def resolutions(self) -> list[ResolutionInfo]:
        """Resolutions sorted ascending by id"""
        return self._resolutions

    @property
    def displays(self) -> list[DisplayInfo]:
        """Displays in backend order"""
        return self._displays

    def clear(self) -> None:
        """Drop all resolutions and the id index"""
        self._resolutions.clear()
        self._lookup.clear()

    def catalog_rebuild(self, raw_modes: Iterable[DisplayMode], current_mode: DisplayMode) -> None:
        """
        Rebuild resolutions from the backend's raw modes

        The current mode is always appended: backends may leave the active
        mode out of their enumeration.

        Args:
            raw_modes: Modes reported by the backend, any order, duplicates allowed
            current_mode: Currently active mode
        """
        self.clear()
        modes: list[DisplayMode] = list(raw_modes)
        modes.append(current_mode)

        for mode in modes:
            resolution_id = resolution_encode(mode.width, mode.height)
            index, existed = sortedItem_insertOrGet(
                self._resolutions,
                resolution_id,
                lambda mode=mode: ResolutionInfo.create(mode.width, mode.height, mode.refresh_rate),
            )
            if existed:
                self._resolutions[index].refreshRate_add(mode.refresh_rate)

        # Inserts shift later entries, so the index is built once at the end
        self._lookup = {
            resolution.resolution_id: index for index, resolution in enumerate(self._resolutions)
        }
        logger.debug(
            "Catalog rebuilt: %d modes -> %d resolutions", len(modes), len(self._resolutions)
        )

    def displays_update(self, displays: Sequence[DisplayInfo], current_mode: DisplayMode) -> None:
        """
        Replace the display list, substituting a synthetic display if empty

        Args:
            displays: Displays reported by the backend
            current_mode: Currently active mode, sizes the synthetic display
        """
        self._displays = list(displays)
        if not self._displays:
            logger.warning("Backend reported no displays, using %dx%d fallback",
                           current_mode.width, current_mode.height)
            self._displays.append(
                DisplayInfo(
                    index=0,
                    name=settings.FALLBACK_DISPLAY_NAME,
                    width=current_mode.width,
                    height=current_mode.height,
                    work_area=WorkArea(x=0, y=0, width=current_mode.width, height=current_mode.height),
                )
            )

    def resolution_contains(self, resolution_id: int) -> bool:
        """Check if a resolution id is present"""
        return resolution_id in self._lookup

    def index_get(self, resolution_id: int) -> int:
        """
        Return the list position of a resolution id

        Raises:
            KeyError: If the id is not in the catalog
        """
        return self._lookup[resolution_id]

    def resolution_get(self, resolution_id: int) -> ResolutionInfo:
        """
        Return the resolution entry for an id

        Raises:
            KeyError: If the id is not in the catalog
        """
        return self._resolutions[self.index_get(resolution_id)]

    def refreshRates_get(self, resolution_id: int) -> list[RefreshRateInfo]:
        """Return the sorted refresh rates of a resolution id"""
        return self.resolution_get(resolution_id).refresh_rates

    def refreshRateIndex_find(self, resolution_id: int, refresh_rate: float) -> int:
        """
        Find the index of an exact refresh rate within a resolution

        Returns:
            Index into the resolution's refresh rates, or -1 if not listed
        """
        for index, rate in enumerate(self.refreshRates_get(resolution_id)):
            if rate.value == refresh_rate:
                return index
        return -1

    def resolution_resolve(self, width: int, height: int, nearest: bool = False) -> Optional[int]:
        """
        Resolve dimensions to a catalog resolution id

        Args:
            width: Wanted width
            height: Wanted height
            nearest: Fall back to the closest resolution when not listed

        Returns:
            Resolution id, or None when absent and nearest is False
        """
        resolution_id = resolution_encode(width, height)
        if self.resolution_contains(resolution_id):
            return resolution_id
        if nearest:
            return self.nearestResolutionId_find(width, height)
        return None

    def nearestResolutionId_find(self, width: int, height: int) -> int:
        """
        Find the resolution closest to the given dimensions

        Distance is |dw| + |dh|; on a tie the earlier (smaller id) entry wins.

        Raises:
            IndexError: If the catalog is empty
        """
        closest: ResolutionInfo = self._resolutions[0]
        smallest_diff: int = abs(width - closest.width) + abs(height - closest.height)
        for resolution in self._resolutions[1:]:
            diff = abs(width - resolution.width) + abs(height - resolution.height)
            if diff < smallest_diff:
                smallest_diff = diff
                closest = resolution
        return closest.resolution_id
