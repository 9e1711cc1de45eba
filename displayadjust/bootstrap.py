"""Bootstrap helpers for config, logging, backend and adjuster wiring."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from displayadjust.adjust.coordinator import CountdownCallback, SettingsCoordinator
from displayadjust.adjust.orchestrator import (
    AdjustmentOrchestrator,
    CompletedCallback,
    StartedCallback,
)
from displayadjust.adjust.scheduler import AsyncioPollScheduler
from displayadjust.backend.base import DisplayBackend
from displayadjust.backend.factory import displayBackend_create
from displayadjust.common.config import Config, ConfigLoader
from displayadjust.common.logging_setup import logging_setup
from displayadjust.common.settings import settings

logger = logging.getLogger(__name__)


def configWithSettings_load(args: argparse.Namespace) -> Config:
    """
    Load configuration and initialize settings singleton.

    Args:
        args: Parsed CLI args.

    Returns:
        Loaded config.

    Raises:
        FileNotFoundError: If an explicit --config path does not exist.
        ValueError: If the config is invalid.
    """
    config_path: Path | None = Path(args.config) if args.config else None
    config: Config = ConfigLoader.configWithOverrides_load(
        file_path=config_path,
        backend=getattr(args, "backend", None),
        display=getattr(args, "display", None),
        timeout_seconds=getattr(args, "timeout", None),
    )
    settings.initialize(config)
    return config


def loggingWithConfig_setup(args: argparse.Namespace, config: Config) -> None:
    """
    Setup logging from config and CLI override.

    Args:
        args: Parsed CLI args.
        config: Loaded config.
    """
    log_level: str = getattr(args, "log_level", None) or config.logging.level
    logging_setup(log_level, config.logging.format, config.logging.file)


def backend_connect(config: Config) -> DisplayBackend:
    """
    Create the configured backend and connect it.

    Args:
        config: Loaded config.

    Returns:
        Connected backend.
    """
    backend: DisplayBackend = displayBackend_create(
        backend_name=config.backend.name,
        display_name=config.backend.display,
        window_id=config.backend.window_id,
    )
    backend.connection_establish()
    logger.info("Backend: %s (display %s)", config.backend.name, config.backend.display or "default")
    return backend


def pollScheduler_create(config: Config) -> AsyncioPollScheduler:
    """
    Create the convergence poll scheduler from config.

    Args:
        config: Loaded config.

    Returns:
        Asyncio scheduler ticking every poll_interval_ms.
    """
    return AsyncioPollScheduler(
        interval_seconds=config.adjustment.poll_interval_ms / settings.POLL_INTERVAL_DIVISOR
    )


def orchestrator_create(
    backend: DisplayBackend,
    config: Config,
    started_callback: Optional[StartedCallback] = None,
    completed_callback: Optional[CompletedCallback] = None,
) -> AdjustmentOrchestrator:
    """
    Create an orchestrator with config-driven poll guards.

    Args:
        backend: Connected backend.
        config: Loaded config.
        started_callback: Optional adjustment-started callback.
        completed_callback: Optional completion callback.

    Returns:
        Orchestrator with populated catalog.
    """
    return AdjustmentOrchestrator(
        backend,
        pollScheduler_create(config),
        started_callback=started_callback,
        completed_callback=completed_callback,
        max_poll_attempts=config.adjustment.max_poll_attempts,
        timeout_seconds=config.adjustment.timeout_seconds,
    )


def settingsCoordinator_create(
    backend: DisplayBackend,
    config: Config,
    completed_callback: Optional[CompletedCallback] = None,
    countdown_callback: Optional[CountdownCallback] = None,
) -> SettingsCoordinator:
    """
    Create a keep / revert coordinator from config.

    Args:
        backend: Connected backend.
        config: Loaded config.
        completed_callback: Optional completion callback.
        countdown_callback: Optional confirmation countdown callback.

    Returns:
        Coordinator using the configured confirmation window and poll guards.
    """
    return SettingsCoordinator(
        backend,
        pollScheduler_create(config),
        confirmation_seconds=config.adjustment.confirmation_seconds,
        completed_callback=completed_callback,
        countdown_callback=countdown_callback,
        max_poll_attempts=config.adjustment.max_poll_attempts,
        timeout_seconds=config.adjustment.timeout_seconds,
    )
