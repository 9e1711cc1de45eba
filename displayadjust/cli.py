"""displayadjust command-line interface"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import signal
import sys
from typing import NoReturn, Optional, Sequence

from displayadjust import __version__
from displayadjust.adjust.orchestrator import AdjustmentOrchestrator
from displayadjust.bootstrap import (
    backend_connect,
    configWithSettings_load,
    loggingWithConfig_setup,
    orchestrator_create,
)
from displayadjust.common.settings import settings
from displayadjust.common.types import AdjustmentKind, AdjustmentStatus, ScreenMode
from displayadjust.store.display_settings import DisplaySettings

logger = logging.getLogger(__name__)

EXIT_CODES: dict[AdjustmentStatus, int] = {
    AdjustmentStatus.SUCCESS: 0,
    AdjustmentStatus.FAIL: 1,
    AdjustmentStatus.ABORTED: 2,
}

_RESOLUTION_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def arguments_parse(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments

    Args:
        argv: Argument list, sys.argv[1:] when None.

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="displayadjust",
        description="Change display resolution, refresh rate, screen mode and display",
    )

    parser.add_argument("--version", action="version", version=f"displayadjust {__version__}")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: search standard locations)",
    )

    parser.add_argument(
        "--display", type=str, default=None, help="X11 display name (overrides config)"
    )

    parser.add_argument(
        "--backend",
        type=str,
        default=None,
        help="Display backend to use. Defaults to x11.",
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List displays, resolutions and refresh rates",
    )

    parser.add_argument(
        "--resolution",
        type=str,
        metavar="WxH",
        default=None,
        help="Target resolution, e.g. 1920x1080",
    )

    parser.add_argument(
        "--refresh-rate",
        type=index_parse,
        metavar="INDEX",
        default=None,
        dest="refresh_rate",
        help="Refresh rate index within the target resolution (see --list)",
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=[mode.value for mode in ScreenMode],
        default=None,
        help="Target screen mode",
    )

    parser.add_argument(
        "--target-display",
        type=index_parse,
        metavar="INDEX",
        default=None,
        dest="target_display",
        help="Move the window onto the display with this index (see --list)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Fail an adjustment that does not converge within SECONDS (overrides config)",
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging (overrides config)"
    )

    parser.add_argument(
        "--info", action="store_true", help="Enable info logging (overrides config)"
    )

    parser.add_argument(
        "--warning", action="store_true", help="Enable warning logging (overrides config)"
    )

    parser.add_argument(
        "--error", action="store_true", help="Enable error logging (overrides config)"
    )

    parser.add_argument(
        "--critical", action="store_true", help="Enable critical logging (overrides config)"
    )

    return parser.parse_args(argv)


def main() -> NoReturn:
    """Main entry point for the displayadjust command"""
    args = arguments_parse()

    log_level_override: str | None = logLevelOverride_get(args)

    try:
        argsWithLogLevel_apply(args, log_level_override)
        exit_code: int = asyncio.run(cli_run(args))
        sys.exit(exit_code)

    except KeyboardInterrupt:
        print("\nAborted")
        sys.exit(EXIT_CODES[AdjustmentStatus.ABORTED])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_CODES[AdjustmentStatus.FAIL])


def logLevelOverride_get(args: argparse.Namespace) -> str | None:
    """
    Resolve explicit log level override flags.

    Args:
        args: Parsed CLI args.

    Returns:
        Selected log level or None.
    """
    if args.critical:
        return "CRITICAL"
    if args.error:
        return "ERROR"
    if args.warning:
        return "WARNING"
    if args.info:
        return "INFO"
    if args.debug:
        return "DEBUG"
    return None


def argsWithLogLevel_apply(args: argparse.Namespace, log_level: str | None) -> None:
    """
    Apply optional log level override to args.

    Args:
        args: Parsed CLI args.
        log_level: Optional log level string.
    """
    if log_level is not None:
        setattr(args, "log_level", log_level)


def index_parse(text: str) -> int:
    """Parse a non-negative list index for argparse"""
    try:
        index = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid index '{text}'") from None
    if index < 0:
        raise argparse.ArgumentTypeError(f"index must be non-negative, got {index}")
    return index


def resolution_parse(text: str) -> tuple[int, int]:
    """
    Parse a `WIDTHxHEIGHT` string.

    Args:
        text: Resolution string such as "1920x1080".

    Returns:
        Tuple of (width, height).

    Raises:
        ValueError: If the string is malformed or a dimension is out of range.
    """
    match = _RESOLUTION_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Invalid resolution '{text}', expected WIDTHxHEIGHT")
    width, height = int(match.group(1)), int(match.group(2))
    limit: int = settings.RESOLUTION_DIMENSION_LIMIT
    if not 0 < width < limit or not 0 < height < limit:
        raise ValueError(f"Resolution '{text}' out of range")
    return width, height


def changesRequested_count(args: argparse.Namespace) -> int:
    """
    Count the requested adjustments.

    A refresh rate index refines the resolution change and does not count
    on its own when a resolution is also given.

    Args:
        args: Parsed CLI args.

    Returns:
        Number of separate adjustments requested.
    """
    resolution_change = args.resolution is not None or args.refresh_rate is not None
    return sum(
        1 for requested in (args.target_display is not None, args.mode is not None, resolution_change)
        if requested
    )


def targetResolutionId_get(orchestrator: AdjustmentOrchestrator, args: argparse.Namespace) -> int:
    """
    Resolve the resolution id an invocation targets.

    Args:
        orchestrator: Orchestrator with a populated catalog.
        args: Parsed CLI args.

    Returns:
        Catalog id of --resolution, or the current resolution id.

    Raises:
        ValueError: If --resolution is not offered by the display.
    """
    if args.resolution is None:
        _, current_id = orchestrator.resolutions_get()
        return current_id
    width, height = resolution_parse(args.resolution)
    resolution_id = orchestrator.resolution_resolve(width, height)
    if resolution_id is None:
        raise ValueError(f"Resolution {width}x{height} not available (see --list)")
    return resolution_id


def targetSettings_build(orchestrator: AdjustmentOrchestrator, args: argparse.Namespace) -> DisplaySettings:
    """
    Build composite target settings from the current state and CLI overrides.

    Args:
        orchestrator: Orchestrator with a populated catalog.
        args: Parsed CLI args.

    Returns:
        Settings for all_adjust().
    """
    _, display_index = orchestrator.displays_get()
    resolution_id = targetResolutionId_get(orchestrator, args)
    if args.refresh_rate is not None:
        refresh_rate_index = args.refresh_rate
    else:
        _, refresh_rate_index = orchestrator.refreshRates_get(resolution_id)
        refresh_rate_index = max(refresh_rate_index, 0)

    return DisplaySettings(
        display_index=args.target_display if args.target_display is not None else display_index,
        resolution_id=resolution_id,
        refresh_rate_index=refresh_rate_index,
        screen_mode=ScreenMode(args.mode) if args.mode is not None else orchestrator.screen_mode,
    )


async def adjustment_dispatch(orchestrator: AdjustmentOrchestrator, args: argparse.Namespace) -> None:
    """
    Run the adjustment(s) requested on the command line.

    Args:
        orchestrator: Orchestrator to drive.
        args: Parsed CLI args.
    """
    if changesRequested_count(args) > 1:
        await orchestrator.all_adjust(targetSettings_build(orchestrator, args))
    elif args.target_display is not None:
        await orchestrator.display_change(args.target_display)
    elif args.mode is not None:
        await orchestrator.screenMode_set(ScreenMode(args.mode))
    else:
        await orchestrator.resolutionById_set(
            targetResolutionId_get(orchestrator, args), args.refresh_rate
        )


def catalog_print(orchestrator: AdjustmentOrchestrator) -> None:
    """
    Print displays, resolutions and refresh rates, marking the current ones.

    Args:
        orchestrator: Orchestrator with a populated catalog.
    """
    displays, current_display = orchestrator.displays_get()
    resolutions, current_id = orchestrator.resolutions_get()

    print("Displays:")
    for index, display in enumerate(displays):
        marker = "*" if index == current_display else " "
        area = display.work_area
        print(f"  {marker} [{index}] {display.name} {display.width}x{display.height}+{area.x}+{area.y}")

    print(f"Screen mode: {orchestrator.screen_mode.value}")

    print("Resolutions:")
    for resolution in resolutions:
        current = resolution.resolution_id == current_id
        marker = "*" if current else " "
        active_rate = -1
        if current:
            _, active_rate = orchestrator.refreshRates_get(resolution.resolution_id)
        rates = " ".join(
            f"[{index}]{rate.value:g}{'*' if index == active_rate else ''}"
            for index, rate in enumerate(resolution.refresh_rates)
        )
        print(f"  {marker} {resolution.label_get():>11}  {rates}")


async def cli_run(args: argparse.Namespace) -> int:
    """
    Connect, optionally list, and run the requested adjustment.

    Args:
        args: Parsed CLI args.

    Returns:
        Process exit code.
    """
    config = configWithSettings_load(args)
    loggingWithConfig_setup(args, config)

    statuses: list[AdjustmentStatus] = []

    def adjustmentCompleted_handle(kind: AdjustmentKind, status: AdjustmentStatus) -> None:
        statuses.append(status)

    backend = backend_connect(config)
    try:
        orchestrator = orchestrator_create(backend, config, completed_callback=adjustmentCompleted_handle)

        if args.list or changesRequested_count(args) == 0:
            catalog_print(orchestrator)
            if changesRequested_count(args) == 0:
                return EXIT_CODES[AdjustmentStatus.SUCCESS]

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, orchestrator.adjustment_abort)
        except NotImplementedError:
            logger.debug("Signal handlers unsupported, Ctrl-C will not abort cleanly")

        try:
            await adjustment_dispatch(orchestrator, args)
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except NotImplementedError:
                pass

        status = statuses[-1] if statuses else AdjustmentStatus.FAIL
        print(f"Adjustment {status.value}")
        return EXIT_CODES[status]
    finally:
        backend.connection_close()


if __name__ == "__main__":
    main()
