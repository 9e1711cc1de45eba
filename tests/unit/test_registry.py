"""Unit tests for sorted registry primitives."""

from __future__ import annotations

from dataclasses import dataclass

from displayadjust.catalog.registry import sortedIndex_locate, sortedItem_insertOrGet


@dataclass
class Entry:
    """Minimal comparable entry."""

    key: int
    label: str = ""

    def comparableValue_get(self) -> int:
        return self.key


class TestSortedIndexLocate:
    """Tests for binary search lookup."""

    def test_present_key_returns_index(self) -> None:
        """Present keys map to their position."""
        items = [Entry(1), Entry(5), Entry(9)]
        assert sortedIndex_locate(items, 1) == 0
        assert sortedIndex_locate(items, 5) == 1
        assert sortedIndex_locate(items, 9) == 2

    def test_missing_key_returns_complement_of_insertion_point(self) -> None:
        """Missing keys encode where they would be inserted."""
        items = [Entry(1), Entry(5), Entry(9)]
        assert sortedIndex_locate(items, 0) == ~0
        assert sortedIndex_locate(items, 6) == ~2
        assert sortedIndex_locate(items, 10) == ~3

    def test_empty_sequence(self) -> None:
        """An empty registry reports insertion at 0."""
        assert sortedIndex_locate([], 42) == -1


class TestSortedItemInsertOrGet:
    """Tests for insert-or-get."""

    def test_inserts_in_order(self) -> None:
        """Inserted entries keep the list sorted."""
        items: list[Entry] = []
        for key in (7, 3, 11, 5):
            sortedItem_insertOrGet(items, key, lambda key=key: Entry(key))

        assert [item.key for item in items] == [3, 5, 7, 11]

    def test_existing_key_is_not_duplicated(self) -> None:
        """An existing key returns its index and skips the factory."""
        items = [Entry(3, "first"), Entry(8)]

        def factory() -> Entry:
            raise AssertionError("factory must not be called")

        index, existed = sortedItem_insertOrGet(items, 3, factory)

        assert (index, existed) == (0, True)
        assert len(items) == 2
        assert items[0].label == "first"

    def test_new_key_reports_insertion_index(self) -> None:
        """A new key reports where it landed."""
        items = [Entry(3), Entry(8)]
        index, existed = sortedItem_insertOrGet(items, 5, lambda: Entry(5))

        assert (index, existed) == (1, False)
        assert items[index].key == 5
