"""Shared test fixtures for flashreview tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from flashreview.schemas import FlashcardRecord, SessionUser
from flashreview.session import SessionContext
from flashreview.store import InMemoryFlashcardStore

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

_BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


def make_record(
    record_id: str,
    *,
    owner_id: str = USER_ID,
    question: str | None = None,
    answer: str | None = None,
    minutes: int = 0,
) -> FlashcardRecord:
    """Build a record; larger `minutes` means newer."""
    return FlashcardRecord(
        id=record_id,
        owner_id=owner_id,
        question=question or f"Question {record_id}?",
        answer=answer or f"Answer {record_id}",
        created_at=_BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def abc_records() -> list[FlashcardRecord]:
    """Three records in newest-first order: A, B, C."""
    return [
        make_record("A", minutes=3),
        make_record("B", minutes=2),
        make_record("C", minutes=1),
    ]


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(SessionUser(id=USER_ID, email="learner@example.com"))


@pytest.fixture
def store(abc_records: list[FlashcardRecord]) -> InMemoryFlashcardStore:
    return InMemoryFlashcardStore(abc_records)
