"""Tests for controller.py — ReviewSessionController end to end."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import OTHER_USER_ID, make_record
from flashreview.collection import IndexOutOfRange
from flashreview.controller import ReviewSessionController, SessionClosedError
from flashreview.schemas import DeleteOutcome, Direction, FlashcardRecord
from flashreview.session import SessionContext, Unauthenticated
from flashreview.store import (
    CardValidationError,
    InMemoryFlashcardStore,
    JsonFileFlashcardStore,
)


class GatedStore(InMemoryFlashcardStore):
    """In-memory store whose deletes wait until the test opens the gate."""

    def __init__(self, records: list[FlashcardRecord]) -> None:
        super().__init__(records)
        self.gate = asyncio.Event()
        self.delete_started = asyncio.Event()
        self.delete_calls: list[str] = []

    async def delete(self, record_id: str, owner_id: str) -> int:
        self.delete_calls.append(record_id)
        self.delete_started.set()
        await self.gate.wait()
        return await super().delete(record_id, owner_id)


class SlowFetchStore(InMemoryFlashcardStore):
    """In-memory store whose fetch_all snapshots, then waits for the gate."""

    def __init__(self, records: list[FlashcardRecord]) -> None:
        super().__init__(records)
        self.gate = asyncio.Event()
        self.fetch_started = asyncio.Event()

    async def fetch_all(self, owner_id: str) -> list[FlashcardRecord]:
        snapshot = await super().fetch_all(owner_id)
        self.fetch_started.set()
        await self.gate.wait()
        return snapshot


async def _started(
    session: SessionContext, store: InMemoryFlashcardStore
) -> ReviewSessionController:
    controller = ReviewSessionController(session, store)
    await controller.start()
    return controller


# ── start / refresh ───────────────────────────────────────────


class TestStart:
    @pytest.mark.asyncio
    async def test_loads_newest_first(self, session, store) -> None:
        controller = await _started(session, store)
        assert [r.id for r in controller.state.records] == ["A", "B", "C"]
        assert controller.state.cursor == 0

    @pytest.mark.asyncio
    async def test_only_own_records(self, session, abc_records) -> None:
        store = InMemoryFlashcardStore(
            [*abc_records, make_record("X", owner_id=OTHER_USER_ID, minutes=9)]
        )
        controller = await _started(session, store)
        assert "X" not in [r.id for r in controller.state.records]

    @pytest.mark.asyncio
    async def test_requires_active_session(self, session, store) -> None:
        session.close()
        controller = ReviewSessionController(session, store)
        with pytest.raises(Unauthenticated):
            await controller.start()


# ── navigation ────────────────────────────────────────────────


class TestNavigate:
    @pytest.mark.asyncio
    async def test_next_and_previous_wrap(self, session, store) -> None:
        controller = await _started(session, store)
        controller.on_navigate(2)
        controller.on_navigate(Direction.NEXT)
        assert controller.state.cursor == 0
        controller.on_navigate("previous")
        assert controller.state.cursor == 2

    @pytest.mark.asyncio
    async def test_jump_out_of_range(self, session, store) -> None:
        controller = await _started(session, store)
        with pytest.raises(IndexOutOfRange):
            controller.on_navigate(5)

    @pytest.mark.asyncio
    async def test_unknown_direction(self, session, store) -> None:
        controller = await _started(session, store)
        with pytest.raises(ValueError):
            controller.on_navigate("sideways")

    @pytest.mark.asyncio
    async def test_toggle_answer(self, session, store) -> None:
        controller = await _started(session, store)
        controller.on_toggle_answer()
        assert controller.projection().display_text == "Answer A"
        controller.on_navigate(Direction.NEXT)
        assert controller.projection().display_text == "Question B?"


class TestSideList:
    @pytest.mark.asyncio
    async def test_select_jumps_and_closes(self, session, store) -> None:
        controller = await _started(session, store)
        controller.toggle_side_list()
        assert controller.projection().side_list_open is True
        controller.select_from_list(2)
        proj = controller.projection()
        assert proj.side_list_open is False
        assert proj.current_card is not None
        assert proj.current_card.id == "C"


# ── delete ────────────────────────────────────────────────────


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_middle_keeps_cursor_on_same_card(
        self, session, store
    ) -> None:
        controller = await _started(session, store)
        controller.on_navigate(2)

        result = await controller.on_request_delete("B")

        assert result.outcome == DeleteOutcome.COMPLETED
        assert [r.id for r in controller.state.records] == ["A", "C"]
        assert controller.state.cursor == 1
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_delete_only_card_goes_empty(self, session) -> None:
        store = InMemoryFlashcardStore([make_record("A")])
        controller = await _started(session, store)

        await controller.on_request_delete("A")

        assert controller.state.cursor is None
        assert controller.projection().is_empty is True

    @pytest.mark.asyncio
    async def test_not_owner_leaves_records(self, session, abc_records) -> None:
        store = InMemoryFlashcardStore(abc_records)
        controller = await _started(session, store)
        # The store now says B belongs to someone else
        store._records["B"] = (99, make_record("B", owner_id=OTHER_USER_ID))

        result = await controller.on_request_delete("B")

        assert result.outcome == DeleteOutcome.REJECTED_NOT_OWNER
        assert [r.id for r in controller.state.records] == ["A", "B", "C"]
        assert not controller.guard.is_busy

    @pytest.mark.asyncio
    async def test_gone_leaves_local_collection(self, session, store) -> None:
        controller = await _started(session, store)
        await store.delete("C", session.user_id)

        result = await controller.on_request_delete("C")

        assert result.outcome == DeleteOutcome.REJECTED_GONE
        assert len(controller.state) == 3

    @pytest.mark.asyncio
    async def test_listener_receives_events(self, session, store) -> None:
        events: list[DeleteOutcome] = []
        controller = ReviewSessionController(
            session, store, on_delete_event=events.append
        )
        await controller.start()

        await controller.on_request_delete("A")

        assert events == [
            DeleteOutcome.ACCEPTED_AND_PENDING,
            DeleteOutcome.COMPLETED,
        ]


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_delete_denied_before_store_call(
        self, session, abc_records
    ) -> None:
        store = GatedStore(abc_records)
        controller = await _started(session, store)

        first = asyncio.create_task(controller.on_request_delete("A"))
        await store.delete_started.wait()

        assert controller.projection().delete_enabled("C") is False
        second = await controller.on_request_delete("C")
        duplicate = await controller.on_request_delete("A")

        store.gate.set()
        first_result = await first

        assert second.outcome == DeleteOutcome.DENIED_BUSY
        assert duplicate.outcome == DeleteOutcome.DENIED_BUSY
        assert first_result.outcome == DeleteOutcome.COMPLETED
        assert store.delete_calls == ["A"]
        assert [r.id for r in controller.state.records] == ["B", "C"]

    @pytest.mark.asyncio
    async def test_navigation_during_delete(self, session, abc_records) -> None:
        store = GatedStore(abc_records)
        controller = await _started(session, store)

        task = asyncio.create_task(controller.on_request_delete("A"))
        await store.delete_started.wait()
        # Local records are untouched until the store confirms
        controller.on_navigate(2)
        assert len(controller.state) == 3

        store.gate.set()
        await task

        assert [r.id for r in controller.state.records] == ["B", "C"]
        assert controller.state.current is not None
        assert controller.state.current.id == "C"

    @pytest.mark.asyncio
    async def test_guard_free_after_completion(self, session, store) -> None:
        controller = await _started(session, store)
        await controller.on_request_delete("A")
        result = await controller.on_request_delete("B")
        assert result.outcome == DeleteOutcome.COMPLETED


# ── teardown ──────────────────────────────────────────────────


class TestClose:
    @pytest.mark.asyncio
    async def test_inflight_delete_finishes_without_reconcile(
        self, session, abc_records
    ) -> None:
        store = GatedStore(abc_records)
        controller = await _started(session, store)

        task = asyncio.create_task(controller.on_request_delete("A"))
        await store.delete_started.wait()
        controller.close()
        store.gate.set()
        result = await task

        assert result.outcome == DeleteOutcome.COMPLETED
        assert await store.fetch_one("A") is None
        assert len(controller.state) == 3
        assert not controller.guard.is_busy

    @pytest.mark.asyncio
    async def test_closed_rejects_store_operations(self, session, store) -> None:
        controller = await _started(session, store)
        controller.close()
        with pytest.raises(SessionClosedError):
            await controller.on_request_delete("A")
        with pytest.raises(SessionClosedError):
            await controller.refresh()


# ── create ────────────────────────────────────────────────────


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_refreshes_with_new_card_first(
        self, session, store
    ) -> None:
        controller = await _started(session, store)
        controller.on_navigate(2)

        record = await controller.create_card("  New?  ", "Yes")

        assert record.question == "New?"
        assert controller.state.records[0].id == record.id
        assert controller.state.cursor == 0
        assert len(controller.state) == 4

    @pytest.mark.asyncio
    async def test_create_validation(self, session, store) -> None:
        controller = await _started(session, store)
        with pytest.raises(CardValidationError):
            await controller.create_card("Q", "   ")
        assert len(controller.state) == 3


class TestRefreshDuringDelete:
    @pytest.mark.asyncio
    async def test_stale_snapshot_drops_deleted_card(
        self, session, abc_records
    ) -> None:
        store = SlowFetchStore(abc_records)
        store.gate.set()
        controller = await _started(session, store)
        store.gate.clear()
        store.fetch_started.clear()

        refresh = asyncio.create_task(controller.refresh())
        await store.fetch_started.wait()
        result = await controller.on_request_delete("B")
        store.gate.set()
        await refresh

        assert result.outcome == DeleteOutcome.COMPLETED
        assert [r.id for r in controller.state.records] == ["A", "C"]

    @pytest.mark.asyncio
    async def test_later_refresh_is_unaffected(self, session, abc_records) -> None:
        store = InMemoryFlashcardStore(abc_records)
        controller = await _started(session, store)
        await controller.on_request_delete("B")

        await controller.refresh()

        assert [r.id for r in controller.state.records] == ["A", "C"]


class TestDeleteWriteFailure:
    @pytest.mark.asyncio
    async def test_failed_write_keeps_card_and_allows_retry(
        self, session, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "cards.json"
        store = JsonFileFlashcardStore(path)
        record = await store.create(session.user_id, "Q", "A")
        controller = await _started(session, store)

        def _raise(self: Path, *args: object, **kwargs: object) -> int:
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr(Path, "write_text", _raise)
            failed = await controller.on_request_delete(record.id)

        assert failed.outcome == DeleteOutcome.REJECTED_DELETE_FAILED
        assert len(controller.state) == 1
        assert await store.fetch_one(record.id) is not None

        retry = await controller.on_request_delete(record.id)

        assert retry.outcome == DeleteOutcome.COMPLETED
        assert controller.state.is_empty
        assert len(JsonFileFlashcardStore(path)) == 0
