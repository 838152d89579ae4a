"""Pydantic schemas for flashreview.

Defines the core data models: FlashcardRecord, SessionUser, and the
enums shared by the review session (navigation, deletion states and
deletion outcomes). All models use frozen=True for immutability.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class FlashcardRecord(BaseModel, frozen=True):
    """A single question/answer flashcard owned by one user. Immutable."""

    id: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    created_at: datetime


class SessionUser(BaseModel, frozen=True):
    """The authenticated user a review session acts for."""

    id: str = Field(min_length=1)
    email: str | None = None


class Direction(StrEnum):
    """Relative navigation directions."""

    NEXT = "next"
    PREVIOUS = "previous"


class DeletionStep(StrEnum):
    """States of a single delete request."""

    REQUESTED = "requested"
    VERIFYING_EXISTENCE = "verifying_existence"
    VERIFYING_OWNERSHIP = "verifying_ownership"
    DELETING = "deleting"
    RECONCILED = "reconciled"
    REJECTED = "rejected"


class DeleteOutcome(StrEnum):
    """Events emitted to the presentation layer for a delete request."""

    ACCEPTED_AND_PENDING = "accepted-and-pending"
    DENIED_BUSY = "denied-busy"
    REJECTED_GONE = "rejected-gone"
    REJECTED_NOT_OWNER = "rejected-not-owner"
    REJECTED_DELETE_FAILED = "rejected-delete-failed"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        """True for every outcome except the pending notification."""
        return self is not DeleteOutcome.ACCEPTED_AND_PENDING
