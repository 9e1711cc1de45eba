"""Backend abstraction layer for display enumeration and mode changes."""

from displayadjust.backend.base import DisplayBackend, MoveOperation
from displayadjust.backend.factory import displayBackend_create

__all__ = [
    "DisplayBackend",
    "MoveOperation",
    "displayBackend_create",
]
