"""Single-flight admission for destructive operations."""

from __future__ import annotations

from dataclasses import dataclass

BUSY_REASON = "a deletion is already in progress"


@dataclass(frozen=True)
class Admission:
    """Result of asking the guard to start a delete."""

    granted: bool
    reason: str | None = None


class MutationGuard:
    """Admits at most one delete at a time.

    Concurrent requests are denied, never queued, including a repeat
    request for the record already being deleted.
    """

    def __init__(self) -> None:
        self._in_flight: str | None = None

    @property
    def in_flight_delete_id(self) -> str | None:
        return self._in_flight

    @property
    def is_busy(self) -> bool:
        return self._in_flight is not None

    def try_begin_delete(self, record_id: str) -> Admission:
        if self._in_flight is not None:
            return Admission(granted=False, reason=BUSY_REASON)
        self._in_flight = record_id
        return Admission(granted=True)

    def end_delete(self) -> None:
        """Release the guard. Safe to call when idle."""
        self._in_flight = None
