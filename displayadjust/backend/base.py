"""Backend protocols for display enumeration and mode changes."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from displayadjust.common.types import DisplayInfo, DisplayMode, Position, ScreenMode


class MoveOperation(Protocol):
    """Handle for a window move started by the backend."""

    @property
    def is_done(self) -> bool:
        """
        Report whether the window reached its target.

        Returns:
            True once the move has completed.
        """
        ...


class DisplayBackend(Protocol):
    """
    Abstract display subsystem consumed by the adjustment orchestrator.

    Apply methods are fire-and-forget: they return once the request is
    issued, and the effect becomes observable through the query methods
    some time later.
    """

    def connection_establish(self) -> None:
        """
        Establish connection to the display subsystem.

        Args:
            None.

        Returns:
            Result value.
        """

    def connection_close(self) -> None:
        """
        Close connection to the display subsystem.

        Args:
            None.

        Returns:
            Result value.
        """

    def displays_query(self) -> Sequence[DisplayInfo]:
        """
        Enumerate connected displays.

        Args:
            None.

        Returns:
            Displays in backend order, possibly empty.
        """
        ...

    def mainWindowDisplay_query(self) -> Optional[DisplayInfo]:
        """
        Return the display currently hosting the application window.

        Args:
            None.

        Returns:
            Display info, or None if it cannot be determined.
        """
        ...

    def currentResolution_query(self) -> DisplayMode:
        """
        Return the active mode of the main display.

        Args:
            None.

        Returns:
            Current output mode.
        """
        ...

    def windowSize_query(self) -> tuple[int, int]:
        """
        Return the application window size.

        Args:
            None.

        Returns:
            Tuple of (width, height).
        """
        ...

    def currentScreenMode_query(self) -> ScreenMode:
        """
        Return the active screen mode.

        Args:
            None.

        Returns:
            Screen mode.
        """
        ...

    def availableModes_query(self) -> Sequence[DisplayMode]:
        """
        Enumerate modes supported by the main display.

        May omit the currently active mode.

        Args:
            None.

        Returns:
            Raw modes, any order.
        """
        ...

    def resolution_apply(
        self,
        width: int,
        height: int,
        screen_mode: ScreenMode,
        refresh_rate: Optional[float] = None,
    ) -> None:
        """
        Request a resolution change.

        Args:
            width: Target width.
            height: Target height.
            screen_mode: Screen mode to keep while changing.
            refresh_rate: Target refresh rate, None to let the backend choose.

        Returns:
            Result value.
        """

    def screenMode_apply(self, screen_mode: ScreenMode) -> None:
        """
        Request a screen mode change.

        Windowed is a pure state change; fullscreen modes re-request the
        main display's full-size resolution.

        Args:
            screen_mode: Target screen mode.

        Returns:
            Result value.
        """

    def windowMove_begin(self, display: DisplayInfo, target: Position) -> MoveOperation:
        """
        Start moving the application window onto another display.

        Args:
            display: Destination display.
            target: Target coordinates relative to the display's work area.

        Returns:
            Pollable move operation.
        """
        ...
