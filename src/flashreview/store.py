"""Flashcard store client contract and local implementations.

The review session only talks to a store through the FlashcardStore
protocol. Two implementations ship with flashreview:

  - InMemoryFlashcardStore: process-local, used by tests and demos
  - JsonFileFlashcardStore: persists the record list to a JSON file

Store calls are coroutines; they are the only points where a review
session suspends.
"""

from __future__ import annotations

import itertools
import json
import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from flashreview.schemas import FlashcardRecord

logger = logging.getLogger(__name__)

# Error codes reported by the record store
FOREIGN_KEY_VIOLATION = "23503"
INSUFFICIENT_PRIVILEGE = "42501"


class StoreError(Exception):
    """Record store failure, with the store's error code when it has one."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class CardValidationError(ValueError):
    """A new card was rejected because a field is empty."""


class FlashcardStore(Protocol):
    """Authenticated CRUD gateway to the flashcard record store."""

    async def fetch_all(self, owner_id: str) -> list[FlashcardRecord]: ...

    async def fetch_one(self, record_id: str) -> FlashcardRecord | None: ...

    async def delete(self, record_id: str, owner_id: str) -> int: ...

    async def create(
        self, owner_id: str, question: str, answer: str
    ) -> FlashcardRecord: ...


def validate_card_text(question: str, answer: str) -> tuple[str, str]:
    """Return stripped question/answer, or raise CardValidationError."""
    question = question.strip()
    answer = answer.strip()
    if not question or not answer:
        raise CardValidationError("Both question and answer are required.")
    return question, answer


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryFlashcardStore:
    """Process-local record store keyed by record id."""

    def __init__(
        self,
        records: Iterable[FlashcardRecord] = (),
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._seq = itertools.count()
        self._records: dict[str, tuple[int, FlashcardRecord]] = {}
        for record in records:
            self._records[record.id] = (next(self._seq), record)

    def __len__(self) -> int:
        return len(self._records)

    def all_records(self) -> list[FlashcardRecord]:
        """Every record regardless of owner, newest first."""
        return self._ordered(r for _, r in self._records.values())

    def _ordered(self, records: Iterable[FlashcardRecord]) -> list[FlashcardRecord]:
        # Insertion sequence breaks ties between equal timestamps
        return sorted(
            records,
            key=lambda r: (r.created_at, self._records[r.id][0]),
            reverse=True,
        )

    async def fetch_all(self, owner_id: str) -> list[FlashcardRecord]:
        return self._ordered(
            r for _, r in self._records.values() if r.owner_id == owner_id
        )

    async def fetch_one(self, record_id: str) -> FlashcardRecord | None:
        entry = self._records.get(record_id)
        return entry[1] if entry is not None else None

    async def delete(self, record_id: str, owner_id: str) -> int:
        entry = self._records.get(record_id)
        if entry is None or entry[1].owner_id != owner_id:
            return 0
        del self._records[record_id]
        try:
            self._persist()
        except StoreError:
            self._records[record_id] = entry
            raise
        return 1

    async def create(
        self, owner_id: str, question: str, answer: str
    ) -> FlashcardRecord:
        question, answer = validate_card_text(question, answer)
        record = FlashcardRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            question=question,
            answer=answer,
            created_at=self._clock(),
        )
        self._records[record.id] = (next(self._seq), record)
        try:
            self._persist()
        except StoreError:
            del self._records[record.id]
            raise
        return record

    def _persist(self) -> None:
        """Hook for subclasses that keep records outside the process."""


class JsonFileFlashcardStore(InMemoryFlashcardStore):
    """Record store persisted to a single JSON file.

    The file holds {"records": [...]} with one object per record. It is
    read once on construction and rewritten after every mutation.
    """

    def __init__(
        self,
        path: Path,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = path
        super().__init__(_read_records(path), clock=clock)

    def _persist(self) -> None:
        data = {
            "records": [
                _serialize_record(r)
                for r in reversed(self.all_records())
            ]
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
            )
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e
        logger.debug("Wrote %d records to %s", len(self), self.path)


def _serialize_record(record: FlashcardRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


def _read_records(path: Path) -> list[FlashcardRecord]:
    """Load records from a store file; a missing file is an empty store.

    Raises:
        StoreError: If the file exists but cannot be parsed.
    """
    if not path.is_file():
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [FlashcardRecord.model_validate(r) for r in data["records"]]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
        raise StoreError(f"Corrupted store file {path}: {e}") from e
