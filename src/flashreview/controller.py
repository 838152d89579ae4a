"""Review session controller: the single owner of a session's card state.

One controller is created per review screen. It composes the collection
state, the mutation guard and the delete protocol, and exposes the
operations a presentation layer binds to. Navigation is synchronous;
store calls (start, refresh, create, delete) are coroutines.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from flashreview import collection
from flashreview.collection import CollectionState
from flashreview.deletion import DeletionResult, run_deletion
from flashreview.guard import MutationGuard
from flashreview.projection import SessionProjection, project
from flashreview.schemas import DeleteOutcome, Direction, FlashcardRecord
from flashreview.session import SessionContext, Unauthenticated
from flashreview.store import FlashcardStore

logger = logging.getLogger(__name__)

DeleteListener = Callable[[DeleteOutcome], None]


class SessionClosedError(RuntimeError):
    """The controller was torn down and no longer accepts store operations."""


class ReviewSessionController:
    """Owns the records, cursor and delete guard of one review session."""

    def __init__(
        self,
        session: SessionContext,
        store: FlashcardStore,
        *,
        on_delete_event: DeleteListener | None = None,
    ) -> None:
        self._session = session
        self._store = store
        self.on_delete_event = on_delete_event
        self._state = CollectionState()
        self._guard = MutationGuard()
        self._side_list_open = False
        self._closed = False
        # Ids removed by completed deletes, in completion order
        self._reconciled_ids: list[str] = []

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def guard(self) -> MutationGuard:
        return self._guard

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Store-backed operations ───────────────────────────────

    async def start(self) -> None:
        """Load the session user's cards. Alias of refresh()."""
        await self.refresh()

    async def refresh(self) -> None:
        """Replace the collection with a full fetch from the store.

        Raises:
            Unauthenticated: If the session has been closed.
            SessionClosedError: If the controller has been torn down.
        """
        self._ensure_open()
        user_id = self._user_id()
        mark = len(self._reconciled_ids)
        records = await self._store.fetch_all(user_id)
        if self._closed:
            return
        state = collection.load(records)
        # The snapshot may predate a delete that completed during the fetch
        for record_id in self._reconciled_ids[mark:]:
            state, _ = collection.remove_by_id(state, record_id)
        self._state = state
        logger.debug("Loaded %d cards for user %s", len(records), user_id)

    async def create_card(self, question: str, answer: str) -> FlashcardRecord:
        """Create a card for the session user, then reload the collection.

        Raises:
            CardValidationError: If question or answer is empty.
            StoreError: If the store rejects the insert.
        """
        self._ensure_open()
        record = await self._store.create(self._user_id(), question, answer)
        logger.info("Created card %s", record.id)
        if not self._closed:
            await self.refresh()
        return record

    async def on_request_delete(self, record_id: str) -> DeletionResult:
        """Run the delete protocol for record_id.

        Delete events are sent to on_delete_event, when set:
        ACCEPTED_AND_PENDING once admitted, then exactly one terminal outcome.
        """
        self._ensure_open()
        return await run_deletion(
            record_id,
            user_id=self._user_id(),
            store=self._store,
            guard=self._guard,
            reconcile=self._reconcile_delete,
            on_event=self.on_delete_event,
        )

    # ── Navigation (synchronous) ──────────────────────────────

    def on_navigate(self, direction: Direction | str | int) -> None:
        """Move to the next/previous card or jump to an index.

        Raises:
            IndexOutOfRange: If an index outside the collection is given.
            ValueError: If direction is not "next" or "previous".
        """
        if isinstance(direction, int):
            self._state = collection.jump_to(self._state, direction)
        elif Direction(direction) == Direction.NEXT:
            self._state = collection.next_card(self._state)
        else:
            self._state = collection.previous_card(self._state)

    def on_toggle_answer(self) -> None:
        self._state = collection.toggle_answer(self._state)

    def toggle_side_list(self) -> None:
        self._side_list_open = not self._side_list_open

    def select_from_list(self, index: int) -> None:
        """Jump to a card picked from the side list and close the list."""
        self._state = collection.jump_to(self._state, index)
        self._side_list_open = False

    def projection(self) -> SessionProjection:
        return project(self._state, self._guard, side_list_open=self._side_list_open)

    # ── Lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        """Tear down without waiting for an in-flight delete."""
        if not self._closed and self._guard.is_busy:
            logger.debug(
                "Closing with delete of %s still in flight",
                self._guard.in_flight_delete_id,
            )
        self._closed = True

    # ── Internal ──────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Review session is closed")

    def _user_id(self) -> str:
        if not self._session.is_active:
            raise Unauthenticated("Session has been closed")
        return self._session.user_id

    def _reconcile_delete(self, record_id: str) -> None:
        if self._closed:
            return
        self._reconciled_ids.append(record_id)
        self._state, removed = collection.remove_by_id(self._state, record_id)
        if not removed:
            logger.debug("Deleted card %s was not in the local collection", record_id)
