"""Immutable collection state and pure transition functions.

All state transitions return new instances — no mutation. The cursor is
None exactly when the collection is empty, and otherwise always points at
a valid record.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from flashreview.schemas import FlashcardRecord


class IndexOutOfRange(IndexError):
    """A jump targeted a position outside the collection."""


@dataclass(frozen=True)
class CollectionState:
    """Ordered records plus cursor and reveal flag. Immutable."""

    records: tuple[FlashcardRecord, ...] = ()
    cursor: int | None = None
    answer_revealed: bool = False

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def current(self) -> FlashcardRecord | None:
        """The record under the cursor, or None when empty."""
        if self.cursor is None:
            return None
        return self.records[self.cursor]

    def index_of(self, record_id: str) -> int | None:
        """Return the position of record_id, or None if absent."""
        for idx, record in enumerate(self.records):
            if record.id == record_id:
                return idx
        return None


# ── Pure helper functions ─────────────────────────────────────


def load(records: Iterable[FlashcardRecord]) -> CollectionState:
    """Build a fresh state from a full store fetch.

    Raises:
        ValueError: If two records share an id.
    """
    items = tuple(records)
    seen: set[str] = set()
    for record in items:
        if record.id in seen:
            raise ValueError(f"Duplicate record id: {record.id}")
        seen.add(record.id)
    return CollectionState(records=items, cursor=0 if items else None)


def _step(state: CollectionState, delta: int) -> CollectionState:
    count = len(state.records)
    if count <= 1 or state.cursor is None:
        return state
    return replace(
        state, cursor=(state.cursor + delta) % count, answer_revealed=False
    )


def next_card(state: CollectionState) -> CollectionState:
    """Advance the cursor (wrapping). No-op with fewer than two records."""
    return _step(state, +1)


def previous_card(state: CollectionState) -> CollectionState:
    """Move the cursor back (wrapping). No-op with fewer than two records."""
    return _step(state, -1)


def jump_to(state: CollectionState, index: int) -> CollectionState:
    """Return new state with the cursor at index.

    Raises:
        IndexOutOfRange: If index is not a valid position.
    """
    if not 0 <= index < len(state.records):
        raise IndexOutOfRange(
            f"Index {index} out of range for {len(state.records)} records"
        )
    return replace(state, cursor=index, answer_revealed=False)


def toggle_answer(state: CollectionState) -> CollectionState:
    """Flip between question and answer. No-op when empty."""
    if state.is_empty:
        return state
    return replace(state, answer_revealed=not state.answer_revealed)


def remove_by_id(
    state: CollectionState, record_id: str
) -> tuple[CollectionState, bool]:
    """Remove a record and repair the cursor.

    Returns:
        (new_state, removed). When record_id is absent the original state
        is returned with removed=False.
    """
    position = state.index_of(record_id)
    if position is None:
        return state, False

    records = state.records[:position] + state.records[position + 1 :]
    if not records:
        return CollectionState(), True

    cursor = state.cursor if state.cursor is not None else 0
    if position < cursor or (position == cursor and cursor == len(state.records) - 1):
        cursor -= 1
    return CollectionState(records=records, cursor=cursor), True
