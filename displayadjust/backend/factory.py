"""Backend factory functions."""

from __future__ import annotations

from typing import Optional

from displayadjust.backend.base import DisplayBackend
from displayadjust.backend.x11 import X11DisplayBackend


def displayBackend_create(
    backend_name: str,
    display_name: Optional[str],
    window_id: Optional[int],
) -> DisplayBackend:
    """
    Create the display backend.

    Args:
        backend_name: Backend identifier (e.g., "x11")
        display_name: Display name (backend-specific)
        window_id: Application window id, None for the active window

    Returns:
        Unconnected DisplayBackend
    """
    backend = backend_name.lower()

    if backend == "x11":
        return X11DisplayBackend(display_name=display_name, window_id=window_id)

    raise ValueError(f"Unsupported backend '{backend_name}'. Supported: x11.")
