"""
Logging configuration helpers.

This module owns runtime logging setup, including version-tagged formatting,
optional file handler wiring and the DISPLAY_DEBUG environment switch.
"""

from __future__ import annotations

import logging
import os

from displayadjust import __version__

__all__ = [
    "logging_setup",
    "logFormatWithVersion_get",
    "logLevelEffective_get",
]

DEBUG_ENV_VAR: str = "DISPLAY_DEBUG"


def logging_setup(level: str, log_format: str, log_file: str | None) -> None:
    """
    Configure logging handlers and version-tagged format string.

    Args:
        level:
            Effective log level token (for example `INFO` or `DEBUG`).
        log_format:
            Base formatter string.
        log_file:
            Optional log file path.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    enhanced_format: str = logFormatWithVersion_get(log_format)
    logging.basicConfig(
        level=getattr(logging, logLevelEffective_get(level).upper()),
        format=enhanced_format,
        handlers=handlers,
    )


def logFormatWithVersion_get(log_format: str) -> str:
    """
    Inject runtime version tag into timestamped log format.

    Args:
        log_format:
            Base formatter string.

    Returns:
        Formatter string with embedded version token.
    """
    return log_format.replace("%(asctime)s", f"%(asctime)s [v{__version__}]")


def logLevelEffective_get(level: str) -> str:
    """
    Resolve the level actually applied, honouring DISPLAY_DEBUG.

    Args:
        level:
            Configured or CLI-selected level token.

    Returns:
        `DEBUG` when DISPLAY_DEBUG is set to a truthy value, else `level`.
    """
    flag: str = os.environ.get(DEBUG_ENV_VAR, "").strip().lower()
    if flag and flag not in {"0", "false", "no", "off"}:
        return "DEBUG"
    return level
