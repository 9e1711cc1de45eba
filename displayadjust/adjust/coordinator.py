"""
Keep / revert / reset workflow over the settings snapshots.

A user-facing settings screen changes one property at a time. Each change is
recorded in the temporary snapshot and applied immediately; the user then has
a limited time to keep it. Without confirmation the last confirmed settings
are restored. Reset restores the settings captured at first activation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from displayadjust.adjust.orchestrator import AdjustmentOrchestrator, CompletedCallback
from displayadjust.adjust.scheduler import PollScheduler
from displayadjust.backend.base import DisplayBackend
from displayadjust.common.settings import settings
from displayadjust.common.types import AdjustmentKind, AdjustmentStatus, ScreenMode
from displayadjust.store.display_settings import DisplaySettings, DisplaySettingsStorage

logger = logging.getLogger(__name__)

__all__ = ["SettingsCoordinator"]

CountdownCallback = Callable[[int], None]
SleepFunc = Callable[[float], Awaitable[None]]


class SettingsCoordinator:
    """Drives an orchestrator from settings-screen style selections."""

    def __init__(
        self,
        backend: DisplayBackend,
        scheduler: PollScheduler,
        storage: Optional[DisplaySettingsStorage] = None,
        confirmation_seconds: int = 10,
        completed_callback: Optional[CompletedCallback] = None,
        countdown_callback: Optional[CountdownCallback] = None,
        max_poll_attempts: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """
        Create the coordinator and its orchestrator.

        Args:
            backend:
                Connected display backend.
            scheduler:
                Convergence poll scheduler.
            storage:
                Snapshot storage, a fresh one when None.
            confirmation_seconds:
                Time the user has to keep a change before it is reverted.
            completed_callback:
                Forwarded orchestrator completion callback.
            countdown_callback:
                Receives remaining confirmation seconds once per tick.
            max_poll_attempts:
                Orchestrator poll guard.
            timeout_seconds:
                Orchestrator time guard.
            sleep:
                Awaitable delay used for the countdown and idle waits.
        """
        self._storage: DisplaySettingsStorage = storage or DisplaySettingsStorage()
        self._confirmation_seconds: int = confirmation_seconds
        self._completed_callback: Optional[CompletedCallback] = completed_callback
        self._countdown_callback: Optional[CountdownCallback] = countdown_callback
        self._sleep: SleepFunc = sleep
        self._confirmation_pending: bool = False
        self._confirmation_task: Optional[asyncio.Task[None]] = None

        self._orchestrator: AdjustmentOrchestrator = AdjustmentOrchestrator(
            backend,
            scheduler,
            started_callback=self.adjustmentStarted_handle,
            completed_callback=self.adjustmentCompleted_handle,
            max_poll_attempts=max_poll_attempts,
            timeout_seconds=timeout_seconds,
        )

    @property
    def orchestrator(self) -> AdjustmentOrchestrator:
        """Underlying orchestrator"""
        return self._orchestrator

    @property
    def storage(self) -> DisplaySettingsStorage:
        """Settings snapshots"""
        return self._storage

    @property
    def confirmation_seconds(self) -> int:
        """Seconds a change may stay unconfirmed"""
        return self._confirmation_seconds

    @property
    def confirmation_pending(self) -> bool:
        """True while a change waits for keep or revert"""
        return self._confirmation_pending

    @property
    def confirmation_task(self) -> Optional[asyncio.Task[None]]:
        """Countdown task of the latest change, if any"""
        return self._confirmation_task

    def settings_capture(self) -> DisplaySettings:
        """
        Capture the current configuration into all three snapshots.

        Returns:
            The captured settings.
        """
        _, display_index = self._orchestrator.displays_get()
        _, resolution_id = self._orchestrator.resolutions_get()
        screen_mode: ScreenMode = self._orchestrator.screen_mode
        refresh_rate_index = 0
        if screen_mode is ScreenMode.EXCLUSIVE_FULLSCREEN:
            _, refresh_rate_index = self._orchestrator.refreshRates_get(resolution_id)
            refresh_rate_index = max(refresh_rate_index, 0)

        current = DisplaySettings(
            display_index=display_index,
            resolution_id=resolution_id,
            refresh_rate_index=refresh_rate_index,
            screen_mode=screen_mode,
        )
        self._storage.settings_captureAll(current)
        logger.info(
            "Captured display=%s resolution=%s refresh_index=%s mode=%s",
            display_index, resolution_id, refresh_rate_index, screen_mode.value,
        )
        return current

    # =========================================================================
    # Selections
    # =========================================================================

    async def display_select(self, index: int) -> None:
        """Record and apply a display selection"""
        self._storage.temp.display_index = index
        await self._orchestrator.display_change(index)

    async def resolution_select(self, resolution_id: int) -> None:
        """Record and apply a resolution selection"""
        self._storage.temp.resolution_id = resolution_id
        await self._orchestrator.resolutionById_set(resolution_id)

    async def refreshRate_select(self, refresh_rate_index: int) -> None:
        """Record and apply a refresh rate for the selected resolution"""
        self._storage.temp.refresh_rate_index = refresh_rate_index
        await self._orchestrator.resolutionById_set(
            self._storage.temp.resolution_id, refresh_rate_index
        )

    async def screenMode_select(self, screen_mode: ScreenMode) -> None:
        """Record and apply a screen mode selection"""
        self._storage.temp.screen_mode = screen_mode
        await self._orchestrator.screenMode_set(screen_mode)

    # =========================================================================
    # Keep / revert / reset
    # =========================================================================

    def settings_keep(self) -> None:
        """Confirm the temporary settings"""
        logger.info("Keeping settings")
        self._confirmation_pending = False
        self._storage.settings_copy(self._storage.temp, self._storage.last)

    async def settings_revert(self) -> None:
        """Abort any adjustment and restore the last confirmed settings"""
        logger.info("Reverting settings")
        self._confirmation_pending = False
        await self.adjustmentIdle_await()
        await self._orchestrator.all_adjust(self._storage.last)
        self._storage.settings_copy(self._storage.last, self._storage.temp)

    async def settings_reset(self) -> None:
        """Abort any adjustment and restore the captured defaults"""
        logger.info("Resetting settings")
        self._confirmation_pending = False
        await self.adjustmentIdle_await()
        await self._orchestrator.all_adjust(self._storage.default)
        self._storage.settings_copy(self._storage.default, self._storage.temp)
        self._storage.settings_copy(self._storage.default, self._storage.last)

    async def adjustmentIdle_await(self) -> None:
        """Abort the in-flight adjustment, if any, and wait until it finished"""
        if not self._orchestrator.adjusting:
            return
        self._orchestrator.adjustment_abort()
        while self._orchestrator.adjusting:
            await self._sleep(0)

    async def confirmation_await(self) -> None:
        """
        Count down the confirmation window and revert when it expires.

        Keep or revert issued during the countdown ends it without action.
        """
        remaining: int = self._confirmation_seconds
        while remaining > 0 and self._confirmation_pending:
            if self._countdown_callback is not None:
                self._countdown_callback(remaining)
            await self._sleep(settings.CONFIRMATION_TICK_SEC)
            remaining -= 1

        if self._confirmation_pending:
            logger.info("Confirmation window expired, reverting")
            if self._countdown_callback is not None:
                self._countdown_callback(0)
            await self.settings_revert()

    # =========================================================================
    # Orchestrator callbacks
    # =========================================================================

    def adjustmentStarted_handle(self, kind: AdjustmentKind) -> None:
        """Start the confirmation countdown for single-property changes"""
        if kind is AdjustmentKind.ALL:
            return
        if self._confirmation_task is not None and not self._confirmation_task.done():
            self._confirmation_task.cancel()
        self._confirmation_pending = True
        self._confirmation_task = asyncio.get_running_loop().create_task(self.confirmation_await())
        self._confirmation_task.add_done_callback(self.confirmationTask_done)

    def confirmationTask_done(self, task: asyncio.Task[None]) -> None:
        """Log a countdown task that ended with an exception"""
        if task.cancelled():
            return
        exc: Optional[BaseException] = task.exception()
        if exc is not None:
            logger.error("Confirmation countdown failed: %s", exc, exc_info=exc)

    def adjustmentCompleted_handle(self, kind: AdjustmentKind, status: AdjustmentStatus) -> None:
        """Forward completion to the user callback"""
        logger.debug("Adjustment %s completed: %s", kind.value, status.value)
        if self._completed_callback is not None:
            self._completed_callback(kind, status)
