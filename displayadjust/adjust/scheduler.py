"""
Poll scheduler used by convergence loops.

Adjustments never block the caller's event loop: between polls they await a
scheduler tick. Production code sleeps on the asyncio loop; tests inject
schedulers that count ticks or flip backend state on a given tick.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

__all__ = ["PollScheduler", "AsyncioPollScheduler"]


class PollScheduler(Protocol):
    """Yields control for one scheduling step."""

    async def tick(self) -> None:
        """Suspend the current adjustment until the next poll."""
        ...


class AsyncioPollScheduler:
    """Tick by sleeping on the running asyncio loop."""

    def __init__(self, interval_seconds: float = 0.0) -> None:
        """
        Args:
            interval_seconds: Delay between polls; 0 yields a single loop step.
        """
        if interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")
        self._interval_seconds: float = interval_seconds

    @property
    def interval_seconds(self) -> float:
        """Delay between polls in seconds"""
        return self._interval_seconds

    async def tick(self) -> None:
        """Sleep one poll interval."""
        await asyncio.sleep(self._interval_seconds)
