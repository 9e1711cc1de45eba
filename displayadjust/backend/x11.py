"""X11 display backend built on the RandR extension and EWMH window state"""

import logging
from typing import Any, Optional

from Xlib import X, Xatom
from Xlib import display as xdisplay
from Xlib.display import Display
from Xlib.protocol import event as xevent

from displayadjust.common.types import DisplayInfo, DisplayMode, Position, ScreenMode, WorkArea

logger = logging.getLogger(__name__)

_NET_WM_STATE_REMOVE: int = 0
_NET_WM_STATE_ADD: int = 1
_REFRESH_RATE_DECIMALS: int = 2


def modeRefreshRate_calculate(dot_clock: int, h_total: int, v_total: int) -> float:
    """
    Compute a RandR mode's refresh rate in Hz

    Args:
        dot_clock: Pixel clock in Hz
        h_total: Total horizontal pixels including blanking
        v_total: Total vertical lines including blanking

    Returns:
        Refresh rate rounded to two decimals, 0.0 for degenerate timings
    """
    if not h_total or not v_total:
        return 0.0
    return round(dot_clock / (h_total * v_total), _REFRESH_RATE_DECIMALS)


class X11MoveOperation:
    """Window move that is done once the window sits on the target display"""

    def __init__(self, backend: "X11DisplayBackend", target_display: DisplayInfo) -> None:
        """
        Initialize move operation

        Args:
            backend: Backend owning the window
            target_display: Display the window is moving onto
        """
        self._backend = backend
        self._target_display = target_display

    @property
    def is_done(self) -> bool:
        """Check whether the window origin now lies on the target display"""
        origin = self._backend.windowOrigin_get()
        return self._target_display.work_area.contains(origin)


class X11DisplayBackend:
    """Display backend backed by X11 RandR"""

    def __init__(self, display_name: Optional[str] = None, window_id: Optional[int] = None) -> None:
        """
        Initialize X11 display backend

        Args:
            display_name: X11 display name (e.g., ':0'), None for default
            window_id: Application window, None to follow _NET_ACTIVE_WINDOW
        """
        self._display: Optional[Display] = None
        self._display_name: Optional[str] = display_name
        self._window_id: Optional[int] = window_id
        self._screen_mode: ScreenMode = ScreenMode.WINDOWED

    def connection_establish(self) -> None:
        """Establish connection to X11 display"""
        self._display = xdisplay.Display(self._display_name)
        if not self._display.has_extension("RANDR"):
            self.connection_close()
            raise RuntimeError("X server does not support the RandR extension")
        if self.windowFullscreen_check():
            self._screen_mode = ScreenMode.BORDERLESS
        logger.debug("Connected to X11 display %s", self._display.get_display_name())

    def connection_close(self) -> None:
        """Close X11 display connection"""
        if self._display is not None:
            self._display.close()
            self._display = None

    def display_get(self) -> Display:
        """
        Get X11 display object

        Returns:
            X11 Display object

        Raises:
            RuntimeError: If not connected to display
        """
        if self._display is None:
            raise RuntimeError("Not connected to X11 display")
        return self._display

    def __enter__(self) -> "X11DisplayBackend":
        """Context manager entry"""
        self.connection_establish()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Context manager exit"""
        self.connection_close()

    def root_get(self) -> Any:
        """Return the root window of the default screen"""
        return self.display_get().screen().root

    def window_get(self) -> Any:
        """
        Resolve the application window

        Returns:
            Xlib window resource

        Raises:
            RuntimeError: If no window id is configured and none is active
        """
        display = self.display_get()
        if self._window_id is not None:
            return display.create_resource_object("window", self._window_id)

        prop = self.root_get().get_full_property(
            display.intern_atom("_NET_ACTIVE_WINDOW"), Xatom.WINDOW
        )
        if prop is None or not prop.value or not prop.value[0]:
            raise RuntimeError("No application window: set backend.window_id in config")
        return display.create_resource_object("window", prop.value[0])

    def windowOrigin_get(self) -> Position:
        """Return the window's top-left corner in root coordinates"""
        window = self.window_get()
        coords = self.root_get().translate_coords(window, 0, 0)
        return Position(x=coords.x, y=coords.y)

    def windowFullscreen_check(self) -> bool:
        """Check whether the window carries _NET_WM_STATE_FULLSCREEN"""
        display = self.display_get()
        try:
            window = self.window_get()
        except RuntimeError:
            return False
        prop = window.get_full_property(display.intern_atom("_NET_WM_STATE"), Xatom.ATOM)
        if prop is None:
            return False
        return display.intern_atom("_NET_WM_STATE_FULLSCREEN") in prop.value

    def windowFullscreen_set(self, enabled: bool) -> None:
        """
        Ask the window manager to add or remove fullscreen state

        Args:
            enabled: True to enter fullscreen, False to leave it
        """
        display = self.display_get()
        window = self.window_get()
        action = _NET_WM_STATE_ADD if enabled else _NET_WM_STATE_REMOVE
        message = xevent.ClientMessage(
            window=window,
            client_type=display.intern_atom("_NET_WM_STATE"),
            data=(32, [action, display.intern_atom("_NET_WM_STATE_FULLSCREEN"), 0, 1, 0]),
        )
        self.root_get().send_event(
            message, event_mask=X.SubstructureRedirectMask | X.SubstructureNotifyMask
        )
        display.flush()

    def displays_query(self) -> list[DisplayInfo]:
        """Enumerate active RandR monitors"""
        display = self.display_get()
        monitors = self.root_get().xrandr_get_monitors(is_active=True).monitors
        displays: list[DisplayInfo] = []
        for index, monitor in enumerate(monitors):
            displays.append(
                DisplayInfo(
                    index=index,
                    name=display.get_atom_name(monitor.name),
                    width=monitor.width_in_pixels,
                    height=monitor.height_in_pixels,
                    work_area=WorkArea(
                        x=monitor.x,
                        y=monitor.y,
                        width=monitor.width_in_pixels,
                        height=monitor.height_in_pixels,
                    ),
                )
            )
        return displays

    def mainWindowDisplay_query(self) -> Optional[DisplayInfo]:
        """Return the display containing the window origin"""
        try:
            origin = self.windowOrigin_get()
        except RuntimeError as e:
            logger.debug(f"Window origin unavailable: {e}")
            return None
        for display_info in self.displays_query():
            if display_info.work_area.contains(origin):
                return display_info
        return None

    def primaryOutput_get(self) -> tuple[Any, Any, Any]:
        """
        Resolve screen resources, the primary output and its info

        Returns:
            Tuple of (screen resources, output id, output info)

        Raises:
            RuntimeError: If no output is driven by a CRTC
        """
        display = self.display_get()
        root = self.root_get()
        resources = root.xrandr_get_screen_resources()
        primary = root.xrandr_get_output_primary().output
        candidates = [primary] if primary else []
        candidates.extend(output for output in resources.outputs if output != primary)
        for output in candidates:
            info = display.xrandr_get_output_info(output, resources.config_timestamp)
            if info.crtc:
                return resources, output, info
        raise RuntimeError("No active RandR output found")

    def currentResolution_query(self) -> DisplayMode:
        """Return the primary output's CRTC size and refresh rate"""
        display = self.display_get()
        resources, _, info = self.primaryOutput_get()
        crtc = display.xrandr_get_crtc_info(info.crtc, resources.config_timestamp)
        refresh_rate = 0.0
        for mode in resources.modes:
            if mode.id == crtc.mode:
                refresh_rate = modeRefreshRate_calculate(mode.dot_clock, mode.h_total, mode.v_total)
                break
        return DisplayMode(width=crtc.width, height=crtc.height, refresh_rate=refresh_rate)

    def windowSize_query(self) -> tuple[int, int]:
        """Return the application window size"""
        geometry = self.window_get().get_geometry()
        return geometry.width, geometry.height

    def currentScreenMode_query(self) -> ScreenMode:
        """Return the tracked screen mode, demoted to windowed if the WM disagrees"""
        if not self.windowFullscreen_check():
            return ScreenMode.WINDOWED
        if self._screen_mode is ScreenMode.WINDOWED:
            return ScreenMode.BORDERLESS
        return self._screen_mode

    def availableModes_query(self) -> list[DisplayMode]:
        """Enumerate modes of the primary output"""
        resources, _, info = self.primaryOutput_get()
        mode_ids = set(info.modes)
        return [
            DisplayMode(
                width=mode.width,
                height=mode.height,
                refresh_rate=modeRefreshRate_calculate(mode.dot_clock, mode.h_total, mode.v_total),
            )
            for mode in resources.modes
            if mode.id in mode_ids
        ]

    def resolution_apply(
        self,
        width: int,
        height: int,
        screen_mode: ScreenMode,
        refresh_rate: Optional[float] = None,
    ) -> None:
        """
        Resize the window, or switch the output mode in fullscreen

        Raises:
            ValueError: If the output has no matching mode
        """
        display = self.display_get()
        if screen_mode is ScreenMode.WINDOWED:
            self.window_get().configure(width=width, height=height)
            display.flush()
            return

        resources, _, info = self.primaryOutput_get()
        mode_ids = set(info.modes)
        matching = [
            mode for mode in resources.modes
            if mode.id in mode_ids and mode.width == width and mode.height == height
        ]
        if refresh_rate is not None:
            matching = [
                mode for mode in matching
                if modeRefreshRate_calculate(mode.dot_clock, mode.h_total, mode.v_total)
                == round(refresh_rate, _REFRESH_RATE_DECIMALS)
            ]
        if not matching:
            raise ValueError(f"No RandR mode {width}x{height} @ {refresh_rate} on primary output")

        crtc = display.xrandr_get_crtc_info(info.crtc, resources.config_timestamp)
        logger.debug("set_crtc_config mode=%s (%dx%d)", matching[0].id, width, height)
        display.xrandr_set_crtc_config(
            info.crtc,
            resources.config_timestamp,
            crtc.x,
            crtc.y,
            matching[0].id,
            crtc.rotation,
            crtc.outputs,
        )
        display.flush()

    def screenMode_apply(self, screen_mode: ScreenMode) -> None:
        """Switch between windowed and the fullscreen modes"""
        self._screen_mode = screen_mode
        if screen_mode is ScreenMode.WINDOWED:
            self.windowFullscreen_set(False)
            return

        self.windowFullscreen_set(True)
        main_display = self.mainWindowDisplay_query()
        if main_display is not None:
            self.resolution_apply(main_display.width, main_display.height, screen_mode)

    def windowMove_begin(self, display: DisplayInfo, target: Position) -> X11MoveOperation:
        """
        Move the window onto a display

        Fullscreen windows are released from fullscreen for the move and
        restored afterwards; the window manager then snaps them to the
        display origin.
        """
        fullscreen = self.windowFullscreen_check()
        if fullscreen:
            self.windowFullscreen_set(False)
        self.window_get().configure(
            x=display.work_area.x + target.x,
            y=display.work_area.y + target.y,
        )
        if fullscreen:
            self.windowFullscreen_set(True)
        self.display_get().flush()
        return X11MoveOperation(self, display)
