"""
Sorted registry primitives over comparable catalog entries.

Resolutions and refresh rates are kept in plain lists sorted by a numeric
key. Lookup is a binary search; insertion shifts the tail of the list. A
missing key is reported as the bitwise complement of its insertion point so
callers can tell "found at i" from "belongs at i" with a single integer.
"""

from __future__ import annotations

from bisect import bisect_left
from typing import Callable, MutableSequence, Protocol, Sequence, TypeVar

__all__ = [
    "ComparableValue",
    "sortedIndex_locate",
    "sortedItem_insertOrGet",
]

K = TypeVar("K", int, float)
T = TypeVar("T", bound="ComparableValue")


class ComparableValue(Protocol):
    """Entry exposing the numeric key it is sorted and looked up by."""

    def comparableValue_get(self) -> int | float:
        """Return the sort/lookup key."""
        ...


def sortedIndex_locate(items: Sequence[T], key: K) -> int:
    """
    Binary search a key-sorted sequence.

    Args:
        items:
            Sequence sorted ascending by `comparableValue_get()`.
        key:
            Key to find.

    Returns:
        Index of the entry holding `key`, or `~insertion_point` (always
        negative) when no entry holds it.
    """
    position: int = bisect_left(items, key, key=lambda item: item.comparableValue_get())
    if position < len(items) and items[position].comparableValue_get() == key:
        return position
    return ~position


def sortedItem_insertOrGet(
    items: MutableSequence[T],
    key: K,
    factory: Callable[[], T],
) -> tuple[int, bool]:
    """
    Return the index of the entry holding `key`, inserting one if needed.

    Args:
        items:
            Mutable sequence sorted ascending by `comparableValue_get()`.
        key:
            Key of the wanted entry.
        factory:
            Builds the new entry; only called when `key` is absent. The
            entry it returns must report `key` from `comparableValue_get()`.

    Returns:
        Tuple of (index, existed). An existing entry is never duplicated.
    """
    position: int = sortedIndex_locate(items, key)
    if position >= 0:
        return position, True

    insertion_point: int = ~position
    items.insert(insertion_point, factory())
    return insertion_point, False
