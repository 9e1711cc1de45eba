"""
Adjustment orchestration.

This module owns the cooperative state machine that applies display changes
without blocking the caller's event loop:

1. Admission: at most one notifying adjustment runs per orchestrator. A
   second request while one is active is refused silently.
2. Execution: an equality check skips no-op adjustments; otherwise the apply
   request is issued once and the backend is polled until it converges or
   an abort is observed.
3. Containment: any exception raised while applying or polling becomes a
   FAIL status instead of propagating to the caller.
4. Completion: the catalog is refreshed, the orchestrator returns to idle and
   the completion callback fires exactly once with the final status.

Sub-steps of a composite adjustment run with notify=False. They share the
composite's admission and let failures propagate so the composite reports a
single aggregate status. Nothing is rolled back when a composite fails or is
aborted part way.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from displayadjust.adjust.scheduler import PollScheduler
from displayadjust.backend.base import DisplayBackend
from displayadjust.catalog.catalog import ResolutionCatalog
from displayadjust.catalog.resolution import (
    RefreshRateInfo,
    ResolutionInfo,
    resolution_decode,
    resolution_encode,
)
from displayadjust.common.types import (
    AdjustmentKind,
    AdjustmentStatus,
    DisplayInfo,
    Position,
    ScreenMode,
    WorkArea,
)
from displayadjust.store.display_settings import DisplaySettings

logger = logging.getLogger(__name__)

__all__ = [
    "AdjustmentOrchestrator",
    "AdjustmentSession",
    "CompletedCallback",
    "StartedCallback",
]

StartedCallback = Callable[[AdjustmentKind], None]
CompletedCallback = Callable[[AdjustmentKind, AdjustmentStatus], None]
AdjustmentAction = Callable[[], Awaitable[None]]


@dataclass
class AdjustmentSession:
    """Bookkeeping for one running adjustment."""

    kind: AdjustmentKind
    notify: bool
    status: AdjustmentStatus = AdjustmentStatus.FAIL
    started_at: float = field(default_factory=time.monotonic)


class AdjustmentOrchestrator:
    """Single-flight, abortable display adjustments over a DisplayBackend."""

    def __init__(
        self,
        backend: DisplayBackend,
        scheduler: PollScheduler,
        started_callback: Optional[StartedCallback] = None,
        completed_callback: Optional[CompletedCallback] = None,
        max_poll_attempts: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        """
        Create the orchestrator and populate displays and resolutions.

        Args:
            backend:
                Connected display backend.
            scheduler:
                Tick source awaited between convergence polls.
            started_callback:
                Called with the kind when a notifying adjustment is admitted.
            completed_callback:
                Called with kind and status when a notifying adjustment ends.
            max_poll_attempts:
                Optional cap on convergence polls before failing.
            timeout_seconds:
                Optional cap on convergence wait time before failing.
        """
        self._backend: DisplayBackend = backend
        self._scheduler: PollScheduler = scheduler
        self._started_callback: Optional[StartedCallback] = started_callback
        self._completed_callback: Optional[CompletedCallback] = completed_callback
        self._max_poll_attempts: Optional[int] = max_poll_attempts
        self._timeout_seconds: Optional[float] = timeout_seconds

        self._catalog: ResolutionCatalog = ResolutionCatalog()
        self._adjusting: bool = False
        self._abort_requested: bool = False

        self.catalog_refresh()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def adjusting(self) -> bool:
        """True while a notifying adjustment is in flight"""
        return self._adjusting

    @property
    def catalog(self) -> ResolutionCatalog:
        """Resolution catalog and display list"""
        return self._catalog

    @property
    def screen_mode(self) -> ScreenMode:
        """Currently active screen mode"""
        return self._backend.currentScreenMode_query()

    @property
    def exclusive_fullscreen(self) -> bool:
        """True in exclusive fullscreen mode"""
        return self.screen_mode is ScreenMode.EXCLUSIVE_FULLSCREEN

    @property
    def current_width(self) -> int:
        """Output width when fullscreen, window width when windowed"""
        return self.currentSize_get()[0]

    @property
    def current_height(self) -> int:
        """Output height when fullscreen, window height when windowed"""
        return self.currentSize_get()[1]

    def currentSize_get(self) -> tuple[int, int]:
        """
        Return the effective (width, height) used for resolution matching.

        Returns:
            Output mode size in fullscreen modes, window size in windowed mode.
        """
        if self.screen_mode.isFullscreen():
            mode = self._backend.currentResolution_query()
            return mode.width, mode.height
        return self._backend.windowSize_query()

    def adjustment_abort(self) -> None:
        """
        Request abort of the in-flight adjustment.

        The apply request already sent is not retracted; polling stops at the
        next tick and the adjustment completes as ABORTED. Reverting is left
        to the caller.
        """
        logger.info("Adjustment abort requested")
        self._abort_requested = True

    # =========================================================================
    # Queries
    # =========================================================================

    def catalog_refresh(self) -> None:
        """Reload displays and resolutions from the backend"""
        current_mode = self._backend.currentResolution_query()
        self._catalog.displays_update(self._backend.displays_query(), current_mode)
        self._catalog.catalog_rebuild(self._backend.availableModes_query(), current_mode)

    def displays_get(self) -> tuple[list[DisplayInfo], int]:
        """
        Return known displays and the index of the one hosting the window.

        Returns:
            Tuple of (displays, current index); index 0 when the window's
            display is not in the list.
        """
        displays = self._catalog.displays
        main_display = self._backend.mainWindowDisplay_query()
        if main_display is not None:
            for index, display in enumerate(displays):
                if display == main_display:
                    return displays, index
        logger.debug("Main window display not found, assuming index 0")
        return displays, 0

    def resolutions_get(self) -> tuple[list[ResolutionInfo], int]:
        """
        Return all resolutions and the id matching the current size.

        Returns:
            Tuple of (resolutions sorted by id, current id or nearest id).
        """
        current_id = self.currentResolution_resolve(nearest=True)
        return self._catalog.resolutions, current_id

    def refreshRates_get(self, resolution_id: int) -> tuple[list[RefreshRateInfo], int]:
        """
        Return refresh rates of a resolution and the index of the active one.

        Args:
            resolution_id:
                Catalog resolution id.

        Returns:
            Tuple of (sorted refresh rates, active index or -1).

        Raises:
            KeyError: If the resolution id is not in the catalog.
        """
        rates = self._catalog.refreshRates_get(resolution_id)
        active_rate = self._backend.currentResolution_query().refresh_rate
        return rates, self._catalog.refreshRateIndex_find(resolution_id, active_rate)

    def currentResolution_resolve(self, nearest: bool = False) -> Optional[int]:
        """Resolve the current size to a catalog id"""
        width, height = self.currentSize_get()
        return self._catalog.resolution_resolve(width, height, nearest)

    def resolution_resolve(self, width: int, height: int, nearest: bool = False) -> Optional[int]:
        """Resolve dimensions to a catalog id, optionally the nearest one"""
        return self._catalog.resolution_resolve(width, height, nearest)

    @staticmethod
    def resolution_encode(width: int, height: int) -> int:
        """Encode dimensions into a resolution id"""
        return resolution_encode(width, height)

    @staticmethod
    def resolution_decode(resolution_id: int) -> tuple[int, int]:
        """Decode a resolution id into (width, height)"""
        return resolution_decode(resolution_id)

    # =========================================================================
    # Adjustments
    # =========================================================================

    async def resolutionById_set(
        self,
        resolution_id: int,
        refresh_rate_index: Optional[int] = None,
        notify: bool = True,
    ) -> None:
        """
        Change resolution, optionally to a specific refresh rate.

        Args:
            resolution_id:
                Catalog resolution id.
            refresh_rate_index:
                Index into the resolution's refresh rates; None keeps the
                active refresh rate.
            notify:
                False when running as a composite sub-step.

        Raises:
            KeyError: If the resolution id is not in the catalog.
            IndexError: If the refresh rate index is out of range.
        """
        resolution = self._catalog.resolution_get(resolution_id)
        if refresh_rate_index is None:
            kind = AdjustmentKind.RESOLUTION_CHANGE
            refresh_rate = self._backend.currentResolution_query().refresh_rate
        else:
            kind = AdjustmentKind.REFRESH_RATE_CHANGE
            if refresh_rate_index < 0:
                raise IndexError(f"Refresh rate index out of range: {refresh_rate_index}")
            refresh_rate = resolution.refresh_rates[refresh_rate_index].value

        logger.debug(
            "resolutionById_set %s -> %s @ %s | notify=%s",
            resolution_id, resolution.label_get(), refresh_rate, notify,
        )
        await self.resolution_set(resolution, refresh_rate, kind, notify)

    async def resolution_set(
        self,
        resolution: ResolutionInfo,
        refresh_rate: float,
        kind: AdjustmentKind = AdjustmentKind.RESOLUTION_CHANGE,
        notify: bool = True,
    ) -> None:
        """
        Change resolution; the refresh rate only matters in exclusive fullscreen.

        Args:
            resolution:
                Target resolution.
            refresh_rate:
                Target refresh rate in Hz.
            kind:
                Kind reported to callbacks.
            notify:
                False when running as a composite sub-step.
        """
        compare_rate: bool = self.exclusive_fullscreen

        def resolution_isEqual() -> bool:
            if self.currentSize_get() != (resolution.width, resolution.height):
                return False
            if not compare_rate:
                return True
            return self._backend.currentResolution_query().refresh_rate == refresh_rate

        def resolution_request() -> None:
            screen_mode = self.screen_mode
            exclusive = screen_mode is ScreenMode.EXCLUSIVE_FULLSCREEN
            self._backend.resolution_apply(
                resolution.width,
                resolution.height,
                screen_mode,
                refresh_rate if exclusive else None,
            )

        await self.adjustmentWithCheck_do(kind, resolution_request, resolution_isEqual, notify)

    async def screenMode_set(self, screen_mode: ScreenMode, notify: bool = True) -> None:
        """
        Change the screen mode.

        Args:
            screen_mode:
                Target screen mode.
            notify:
                False when running as a composite sub-step.
        """
        logger.debug("screenMode_set %s | notify=%s", screen_mode.value, notify)

        def screenMode_isEqual() -> bool:
            return self._backend.currentScreenMode_query() is screen_mode

        def screenMode_request() -> None:
            self._backend.screenMode_apply(screen_mode)

        await self.adjustmentWithCheck_do(
            AdjustmentKind.SCREEN_MODE_CHANGE, screenMode_request, screenMode_isEqual, notify
        )

    async def display_change(self, index: int, notify: bool = True) -> None:
        """
        Move the application window onto another display.

        Windowed windows target the display origin. Fullscreen windows target
        the display center, since backends snap fullscreen windows moved to
        an origin back onto their current display.

        Args:
            index:
                Index into the display list.
            notify:
                False when running as a composite sub-step.
        """
        logger.debug("display_change %s | notify=%s", index, notify)

        async def display_move() -> None:
            displays = self._catalog.displays
            if not 0 <= index < len(displays):
                raise IndexError(f"Display index out of range: {index}")
            display = displays[index]
            target = displayMoveTarget_get(display, self.screen_mode)
            move_operation = self._backend.windowMove_begin(display, target)
            await self.convergence_await(lambda: move_operation.is_done)

        await self.adjustment_run(AdjustmentKind.DISPLAY_CHANGE, display_move, notify)

    async def all_adjust(self, target: DisplaySettings, notify: bool = True) -> None:
        """
        Apply display, screen mode and resolution as one adjustment.

        Sub-steps run in that order, each converging before the next starts.
        Once an abort is observed the remaining sub-steps are skipped.

        Args:
            target:
                Settings to apply.
            notify:
                False to run as a sub-step of a larger sequence; failures
                then propagate instead of being reported.
        """
        logger.debug(
            "all_adjust display=%s mode=%s resolution=%s refresh_index=%s | notify=%s",
            target.display_index,
            target.screen_mode.value,
            target.resolution_id,
            target.refresh_rate_index,
            notify,
        )

        async def all_sequence() -> None:
            steps: list[Callable[[], Awaitable[None]]] = [
                lambda: self.display_change(target.display_index, notify=False),
                lambda: self.screenMode_set(target.screen_mode, notify=False),
                lambda: self.resolutionById_set(
                    target.resolution_id, target.refresh_rate_index, notify=False
                ),
            ]
            for step in steps:
                if self._abort_requested:
                    logger.info("Abort observed, skipping remaining composite steps")
                    return
                await step()

        await self.adjustment_run(AdjustmentKind.ALL, all_sequence, notify)

    # =========================================================================
    # State machine
    # =========================================================================

    async def adjustmentWithCheck_do(
        self,
        kind: AdjustmentKind,
        action: Callable[[], None],
        equality_check: Callable[[], bool],
        notify: bool = True,
    ) -> None:
        """
        Run an apply-then-poll adjustment unless already at the target.

        Args:
            kind:
                Kind reported to callbacks.
            action:
                Fire-and-forget apply request.
            equality_check:
                Side-effect-free predicate, True once the backend matches.
            notify:
                False when running as a composite sub-step.
        """
        async def adjustment_logic() -> None:
            if equality_check():
                logger.debug("%s already at target, nothing to apply", kind.value)
                return
            action()
            await self.convergence_await(equality_check)

        await self.adjustment_run(kind, adjustment_logic, notify)

    async def convergence_await(self, converged: Callable[[], bool]) -> None:
        """
        Yield at least once, then poll until converged or aborted.

        Args:
            converged:
                Predicate re-evaluated after every tick.

        Raises:
            TimeoutError: If a configured poll or time limit is exceeded.
        """
        started_at: float = time.monotonic()
        polls: int = 0
        while True:
            await self._scheduler.tick()
            polls += 1
            if converged():
                logger.debug("Converged after %d polls", polls)
                return
            if self._abort_requested:
                logger.debug("Abort observed after %d polls", polls)
                return
            if self._max_poll_attempts is not None and polls >= self._max_poll_attempts:
                raise TimeoutError(f"No convergence after {polls} polls")
            if (
                self._timeout_seconds is not None
                and time.monotonic() - started_at >= self._timeout_seconds
            ):
                raise TimeoutError(f"No convergence within {self._timeout_seconds}s")

    async def adjustment_run(
        self,
        kind: AdjustmentKind,
        action: AdjustmentAction,
        notify: bool,
    ) -> None:
        """
        Admit, execute and complete one adjustment.

        Args:
            kind:
                Kind reported to callbacks.
            action:
                Coroutine function performing the adjustment.
            notify:
                True for a top-level adjustment with callbacks; False for a
                composite sub-step, whose failures propagate to the composite.
        """
        if not self.adjustment_start(kind, notify):
            return

        session = AdjustmentSession(kind=kind, notify=notify)
        try:
            await action()
            session.status = AdjustmentStatus.SUCCESS
        except asyncio.CancelledError:
            self._abort_requested = True
            raise
        except Exception as exc:
            if not notify:
                raise
            logger.error("Adjustment %s failed: %s", kind.value, exc, exc_info=True)
        finally:
            self.adjustment_end(session)

    def adjustment_start(self, kind: AdjustmentKind, notify: bool) -> bool:
        """
        Enter the adjusting state for a notifying adjustment.

        Args:
            kind:
                Kind being admitted.
            notify:
                Sub-steps (False) are always admitted without state changes.

        Returns:
            False when another adjustment is already in flight.
        """
        if not notify:
            return True

        if self._adjusting:
            logger.warning("Already adjusting, refusing %s", kind.value)
            return False

        self._adjusting = True
        self._abort_requested = False
        logger.info("[ADJUST] %s started", kind.value)
        if self._started_callback is not None:
            try:
                self._started_callback(kind)
            except Exception as exc:
                logger.error("Started callback for %s failed: %s", kind.value, exc, exc_info=True)
        return True

    def adjustment_end(self, session: AdjustmentSession) -> None:
        """
        Leave the adjusting state and report the final status.

        Args:
            session:
                Session of the adjustment that finished.
        """
        if not session.notify:
            return

        try:
            self.catalog_refresh()
        except Exception as exc:
            logger.error("Catalog refresh after %s failed: %s", session.kind.value, exc, exc_info=True)

        self._adjusting = False
        status = session.status
        if self._abort_requested:
            status = AdjustmentStatus.ABORTED
            self._abort_requested = False

        logger.info(
            "[ADJUST] %s finished: %s (%.3fs)",
            session.kind.value,
            status.value,
            time.monotonic() - session.started_at,
        )
        if self._completed_callback is not None:
            try:
                self._completed_callback(session.kind, status)
            except Exception as exc:
                logger.error("Completed callback for %s failed: %s", session.kind.value, exc, exc_info=True)


def displayMoveTarget_get(display: DisplayInfo, screen_mode: ScreenMode) -> Position:
    """
    Return window move target coordinates relative to a display.

    Args:
        display:
            Destination display.
        screen_mode:
            Active screen mode.

    Returns:
        Display origin when windowed, display center otherwise.
    """
    if screen_mode is ScreenMode.WINDOWED:
        return Position(x=0, y=0)
    return WorkArea(x=0, y=0, width=display.width, height=display.height).center_get()
