"""Delete protocol: verify existence, verify ownership, delete, reconcile.

A request walks REQUESTED -> VERIFYING_EXISTENCE -> VERIFYING_OWNERSHIP ->
DELETING and ends in RECONCILED or REJECTED. The mutation guard is released
on every exit path before control returns to the caller, including when a
store call raises something other than StoreError (which then propagates).
Local state is only touched after the store confirms the delete.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from flashreview.guard import MutationGuard
from flashreview.schemas import DeleteOutcome, DeletionStep
from flashreview.store import (
    FOREIGN_KEY_VIOLATION,
    INSUFFICIENT_PRIVILEGE,
    FlashcardStore,
    StoreError,
)

logger = logging.getLogger(__name__)

MSG_BUSY = "A deletion is already in progress. Please wait."
MSG_GONE = "This flashcard no longer exists."
MSG_NOT_OWNER = "You do not have permission to delete this flashcard."
MSG_NOTHING_DELETED = "Failed to delete flashcard: no matching card for this user."
MSG_DELETED = "Flashcard deleted successfully."

_STORE_CODE_MESSAGES = {
    FOREIGN_KEY_VIOLATION: (
        "This flashcard is referenced by other data and cannot be deleted."
    ),
    INSUFFICIENT_PRIVILEGE: (
        "You do not have permission to delete this flashcard "
        "(denied by the store's access policy)."
    ),
}


@dataclass(frozen=True)
class DeletionResult:
    """Terminal result of one delete request."""

    record_id: str
    outcome: DeleteOutcome
    message: str
    trace: tuple[DeletionStep, ...]

    @property
    def succeeded(self) -> bool:
        return self.outcome == DeleteOutcome.COMPLETED


def describe_store_error(error: StoreError, *, action: str) -> str:
    """Turn a StoreError into a user-facing message."""
    known = _STORE_CODE_MESSAGES.get(error.code or "")
    if known is not None:
        return known
    return f"Failed to {action}: {error.message}"


async def run_deletion(
    record_id: str,
    *,
    user_id: str,
    store: FlashcardStore,
    guard: MutationGuard,
    reconcile: Callable[[str], None],
    on_event: Callable[[DeleteOutcome], None] | None = None,
) -> DeletionResult:
    """Run one delete request to a terminal state.

    Args:
        record_id: Id of the record to delete.
        user_id: The session user; only their own records may be deleted.
        store: Record store client.
        guard: Single-flight guard shared by the session.
        reconcile: Called with record_id once the store confirms the delete.
        on_event: Receives ACCEPTED_AND_PENDING after admission and then the
            terminal outcome.

    Returns:
        DeletionResult with the outcome and the states visited.
    """
    trace: list[DeletionStep] = [DeletionStep.REQUESTED]

    def _emit(outcome: DeleteOutcome) -> None:
        if on_event is not None:
            on_event(outcome)

    admission = guard.try_begin_delete(record_id)
    if not admission.granted:
        logger.debug("Delete of %s denied: %s", record_id, admission.reason)
        _emit(DeleteOutcome.DENIED_BUSY)
        return DeletionResult(
            record_id, DeleteOutcome.DENIED_BUSY, MSG_BUSY, tuple(trace)
        )

    _emit(DeleteOutcome.ACCEPTED_AND_PENDING)
    finished = False
    try:
        outcome, message = await _verify_and_delete(
            record_id, user_id=user_id, store=store, trace=trace
        )
        if outcome == DeleteOutcome.COMPLETED:
            reconcile(record_id)
            trace.append(DeletionStep.RECONCILED)
        else:
            trace.append(DeletionStep.REJECTED)
        finished = True
    finally:
        guard.end_delete()
        if not finished:
            # Listeners still get a terminal outcome before the error propagates
            logger.error("Delete of %s aborted by an unexpected error", record_id)
            _emit(DeleteOutcome.REJECTED_DELETE_FAILED)

    logger.debug("Delete of %s finished: %s", record_id, outcome.value)
    _emit(outcome)
    return DeletionResult(record_id, outcome, message, tuple(trace))


async def _verify_and_delete(
    record_id: str,
    *,
    user_id: str,
    store: FlashcardStore,
    trace: list[DeletionStep],
) -> tuple[DeleteOutcome, str]:
    trace.append(DeletionStep.VERIFYING_EXISTENCE)
    try:
        existing = await store.fetch_one(record_id)
    except StoreError as e:
        logger.warning("Existence check for %s failed: %s", record_id, e)
        return DeleteOutcome.REJECTED_DELETE_FAILED, describe_store_error(
            e, action="verify flashcard existence"
        )
    if existing is None:
        return DeleteOutcome.REJECTED_GONE, MSG_GONE

    trace.append(DeletionStep.VERIFYING_OWNERSHIP)
    if existing.owner_id != user_id:
        logger.info(
            "Refusing delete of %s: owned by %s, session user %s",
            record_id,
            existing.owner_id,
            user_id,
        )
        return DeleteOutcome.REJECTED_NOT_OWNER, MSG_NOT_OWNER

    trace.append(DeletionStep.DELETING)
    try:
        affected = await store.delete(record_id, user_id)
    except StoreError as e:
        logger.warning("Delete of %s failed: %s", record_id, e)
        return DeleteOutcome.REJECTED_DELETE_FAILED, describe_store_error(
            e, action="delete flashcard"
        )
    if affected == 0:
        return DeleteOutcome.REJECTED_DELETE_FAILED, MSG_NOTHING_DELETED

    return DeleteOutcome.COMPLETED, MSG_DELETED
