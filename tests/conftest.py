"""Pytest configuration and shared fixtures for displayadjust tests

This module provides a scriptable display backend, a counting poll
scheduler, and common fixtures used across the unit tests.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from displayadjust.common.config import Config, ConfigLoader
from displayadjust.common.settings import settings
from displayadjust.common.types import DisplayInfo, DisplayMode, Position, ScreenMode, WorkArea


def displayInfo_make(index: int, x: int, width: int, height: int, name: str = "") -> DisplayInfo:
    """Build a display laid out horizontally at the given x offset"""
    return DisplayInfo(
        index=index,
        name=name or f"DP-{index}",
        width=width,
        height=height,
        work_area=WorkArea(x=x, y=0, width=width, height=height),
    )


DEFAULT_DISPLAYS = [
    displayInfo_make(0, 0, 1920, 1080),
    displayInfo_make(1, 1920, 2560, 1440),
]

DEFAULT_MODES = [
    DisplayMode(width=2560, height=1440, refresh_rate=60.0),
    DisplayMode(width=1920, height=1080, refresh_rate=144.0),
    DisplayMode(width=1920, height=1080, refresh_rate=60.0),
    DisplayMode(width=1280, height=720, refresh_rate=60.0),
]


class FakeMoveOperation:
    """Move operation that is done once the fake window sits on the target display"""

    def __init__(self, backend: "FakeBackend", target_index: int) -> None:
        self._backend = backend
        self._target_index = target_index

    @property
    def is_done(self) -> bool:
        return self._backend.main_display_index == self._target_index


class FakeBackend:
    """
    In-memory display backend whose state converges after a set number of polls.

    Apply calls are recorded in `calls` and take effect after
    `converge_after` calls to `pending_advance()` (0 applies at once,
    None never applies).
    """

    def __init__(
        self,
        converge_after: Optional[int] = 1,
        displays: Optional[list[DisplayInfo]] = None,
        modes: Optional[list[DisplayMode]] = None,
        current_mode: DisplayMode = DisplayMode(width=1920, height=1080, refresh_rate=60.0),
        window_size: tuple[int, int] = (1280, 720),
        screen_mode: ScreenMode = ScreenMode.WINDOWED,
        main_display_index: Optional[int] = 0,
    ) -> None:
        self.converge_after = converge_after
        self.displays = list(DEFAULT_DISPLAYS if displays is None else displays)
        self.modes = list(DEFAULT_MODES if modes is None else modes)
        self.current_mode = current_mode
        self.window_size = window_size
        self.screen_mode = screen_mode
        self.main_display_index = main_display_index
        self.apply_error: Optional[Exception] = None
        self.connected = False
        self.calls: list[tuple] = []
        self._pending: list[list] = []

    # Convergence control

    def change_schedule(self, change: Callable[[], None]) -> None:
        """Apply a state change now or after converge_after polls"""
        if self.converge_after is None:
            self._pending.append([None, change])
        elif self.converge_after == 0:
            change()
        else:
            self._pending.append([self.converge_after, change])

    def pending_advance(self) -> None:
        """Advance pending changes by one poll"""
        still_pending: list[list] = []
        for entry in self._pending:
            if entry[0] is None:
                still_pending.append(entry)
                continue
            entry[0] -= 1
            if entry[0] <= 0:
                entry[1]()
            else:
                still_pending.append(entry)
        self._pending = still_pending

    def apply_check(self) -> None:
        if self.apply_error is not None:
            raise self.apply_error

    # DisplayBackend

    def connection_establish(self) -> None:
        self.connected = True

    def connection_close(self) -> None:
        self.connected = False

    def displays_query(self) -> list[DisplayInfo]:
        return list(self.displays)

    def mainWindowDisplay_query(self) -> Optional[DisplayInfo]:
        if self.main_display_index is None or self.main_display_index >= len(self.displays):
            return None
        return self.displays[self.main_display_index]

    def currentResolution_query(self) -> DisplayMode:
        return self.current_mode

    def windowSize_query(self) -> tuple[int, int]:
        return self.window_size

    def currentScreenMode_query(self) -> ScreenMode:
        return self.screen_mode

    def availableModes_query(self) -> list[DisplayMode]:
        return list(self.modes)

    def resolution_apply(
        self,
        width: int,
        height: int,
        screen_mode: ScreenMode,
        refresh_rate: Optional[float] = None,
    ) -> None:
        self.calls.append(("resolution_apply", width, height, screen_mode, refresh_rate))
        self.apply_check()

        def resolution_change() -> None:
            if screen_mode is ScreenMode.WINDOWED:
                self.window_size = (width, height)
            else:
                rate = self.current_mode.refresh_rate if refresh_rate is None else refresh_rate
                self.current_mode = DisplayMode(width=width, height=height, refresh_rate=rate)

        self.change_schedule(resolution_change)

    def screenMode_apply(self, screen_mode: ScreenMode) -> None:
        self.calls.append(("screenMode_apply", screen_mode))
        self.apply_check()

        def screenMode_change() -> None:
            self.screen_mode = screen_mode

        self.change_schedule(screenMode_change)

    def windowMove_begin(self, display: DisplayInfo, target: Position) -> FakeMoveOperation:
        self.calls.append(("windowMove_begin", display.index, target))
        self.apply_check()

        def display_change() -> None:
            self.main_display_index = display.index

        self.change_schedule(display_change)
        return FakeMoveOperation(self, display.index)

    def callNames_get(self) -> list[str]:
        """Names of the apply calls in order"""
        return [call[0] for call in self.calls]


class CountingScheduler:
    """Poll scheduler that counts ticks, runs hooks and advances a fake backend"""

    def __init__(self, backend: Optional[FakeBackend] = None) -> None:
        self.backend = backend
        self.ticks = 0
        self.hooks: list[Callable[[int], None]] = []

    async def tick(self) -> None:
        self.ticks += 1
        for hook in self.hooks:
            hook(self.ticks)
        if self.backend is not None:
            self.backend.pending_advance()
        await asyncio.sleep(0)


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Connected fake backend converging after one poll"""
    backend = FakeBackend()
    backend.connection_establish()
    return backend


@pytest.fixture
def counting_scheduler(fake_backend: FakeBackend) -> CountingScheduler:
    """Counting scheduler bound to the fake backend"""
    return CountingScheduler(fake_backend)


@pytest.fixture
def backend_make() -> type[FakeBackend]:
    """Fake backend class for tests that need custom state"""
    return FakeBackend


@pytest.fixture
def scheduler_make() -> type[CountingScheduler]:
    """Counting scheduler class for tests that wire their own backend"""
    return CountingScheduler


@pytest.fixture
def sample_config() -> Config:
    """Load sample configuration for testing

    Returns:
        Config object with repository sample values
    """
    config_path = Path(__file__).parent.parent / "config.yml"
    if not config_path.exists():
        pytest.skip("config.yml not found - required for this test")
    return ConfigLoader.config_load(config_path)


@pytest.fixture
def reset_settings() -> Generator[None, None, None]:
    """Reset settings singleton between tests

    This fixture ensures each test starts without a loaded config.
    """
    settings._config = None
    yield
    settings._config = None


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Setup logging for tests"""
    caplog.set_level(logging.DEBUG)


# Markers for test organization
def pytest_configure(config) -> None:
    """Register custom pytest markers used by this test suite."""
    config.addinivalue_line("markers", "requires_x11: mark test as requiring X11 display")
