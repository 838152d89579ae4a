"""Read-only view of a review session, derived on demand."""

from __future__ import annotations

from dataclasses import dataclass

from flashreview.collection import CollectionState
from flashreview.guard import MutationGuard
from flashreview.schemas import FlashcardRecord


@dataclass(frozen=True)
class SideListEntry:
    """One row of the side-panel card list."""

    id: str
    question: str
    answer: str
    is_current: bool
    delete_enabled: bool

    def answer_preview(self, limit: int) -> str:
        """The answer cut to at most limit characters, ending in an ellipsis."""
        if len(self.answer) <= limit:
            return self.answer
        return self.answer[: limit - 1] + "…"


@dataclass(frozen=True)
class SessionProjection:
    """Everything a presentation layer needs to render the session."""

    current_card: FlashcardRecord | None
    display_text: str | None
    answer_revealed: bool
    is_empty: bool
    can_navigate: bool
    position_label: str | None
    peek_question: str | None
    side_list: tuple[SideListEntry, ...]
    side_list_open: bool
    deleting_id: str | None

    def delete_enabled(self, record_id: str) -> bool:
        """Deletes are globally disabled while any delete is running."""
        return self.deleting_id is None


def project(
    state: CollectionState,
    guard: MutationGuard,
    *,
    side_list_open: bool = False,
) -> SessionProjection:
    """Build a SessionProjection from collection and guard state."""
    card = state.current
    count = len(state.records)
    can_navigate = count > 1
    deleting_id = guard.in_flight_delete_id

    display_text: str | None = None
    if card is not None:
        display_text = card.answer if state.answer_revealed else card.question

    position_label: str | None = None
    peek_question: str | None = None
    if state.cursor is not None:
        position_label = f"Card {state.cursor + 1} of {count}"
        if can_navigate:
            peek_question = state.records[(state.cursor + 1) % count].question

    side_list = tuple(
        SideListEntry(
            id=r.id,
            question=r.question,
            answer=r.answer,
            is_current=idx == state.cursor,
            delete_enabled=deleting_id is None,
        )
        for idx, r in enumerate(state.records)
    )

    return SessionProjection(
        current_card=card,
        display_text=display_text,
        answer_revealed=state.answer_revealed and card is not None,
        is_empty=count == 0,
        can_navigate=can_navigate,
        position_label=position_label,
        peek_question=peek_question,
        side_list=side_list,
        side_list_open=side_list_open and count > 0,
        deleting_id=deleting_id,
    )
