"""Tests for SchedulingOrchestrator: triggers, queueing, failure isolation."""

from __future__ import annotations

import logging
import threading
import time
from datetime import date

import pytest

from conftest import NOW, day, make_batch, make_config


@pytest.fixture
def store():
    from batch_allocation.store import InMemoryBatchStore

    return InMemoryBatchStore()


@pytest.fixture
def orchestrator(store):
    from batch_allocation.orchestrator import SchedulingOrchestrator

    with SchedulingOrchestrator(store, make_config("standard"), clock=lambda: NOW) as orch:
        yield orch


class _FlakyStore:
    """Store wrapper whose first `failures` working-set reads raise."""

    def __init__(self, inner, failures: int = 1) -> None:
        self._inner = inner
        self.failures = failures

    def fetch_active(self):
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("store unavailable")
        return self._inner.fetch_active()

    def __getattr__(self, name):
        return getattr(self._inner, name)


class TestTriggers:

    def test_create_schedules_batch(self, orchestrator, store):
        from batch_allocation.types import BatchStatus

        created = orchestrator.create_batch(make_batch(batch_id=None))
        orchestrator.wait_idle()

        saved = store.get(created.batch_id)
        assert saved.status is BatchStatus.SCHEDULED
        assert saved.schedule.date == day("mon")
        assert [s.worker_count for s in saved.segments] == [30, 10]

    def test_update_reschedules(self, orchestrator, store):
        created = orchestrator.create_batch(make_batch(batch_id=None))
        orchestrator.wait_idle()

        orchestrator.update_batch(created.batch_id, start_date=day("wed"))
        orchestrator.wait_idle()

        saved = store.get(created.batch_id)
        assert saved.schedule.date == day("wed")
        assert [s.date for s in saved.segments] == [day("wed"), day("thu")]

    def test_update_clears_stale_allocation(self, store):
        """Before the re-run executes, the edited batch is already pending."""
        from batch_allocation.orchestrator import SchedulingOrchestrator
        from batch_allocation.types import BatchStatus

        gate = threading.Event()
        with SchedulingOrchestrator(store, clock=lambda: NOW) as orch:
            created = orch.create_batch(make_batch(batch_id=None))
            orch.wait_idle()
            assert store.get(created.batch_id).status is BatchStatus.SCHEDULED

            orch._queue.submit(gate.wait)  # hold the queue
            orch.update_batch(created.batch_id, priority=4)
            pending = store.get(created.batch_id)
            assert pending.status is BatchStatus.PENDING
            assert pending.schedule is None
            assert pending.segments == []
            gate.set()
            orch.wait_idle()
            assert store.get(created.batch_id).status is BatchStatus.SCHEDULED

    def test_delete_frees_capacity_on_next_pass(self, orchestrator, store):
        first = orchestrator.create_batch(make_batch(batch_id=None, priority=5))
        second = orchestrator.create_batch(make_batch(batch_id=None, priority=1))
        orchestrator.wait_idle()
        assert store.get(second.batch_id).schedule.date == day("tue")

        orchestrator.delete_batch(first.batch_id)
        index = orchestrator.reschedule_now()
        assert store.get(second.batch_id).schedule.date == day("mon")
        assert [b.batch_id for b in index[day("mon")]] == [second.batch_id]

    def test_reschedule_now_empty_store(self, orchestrator):
        assert orchestrator.reschedule_now() == {}

    def test_completed_batches_ignored(self, orchestrator, store):
        from batch_allocation.types import BatchStatus

        created = orchestrator.create_batch(make_batch(batch_id=None))
        orchestrator.wait_idle()
        store.update(created.batch_id, {"status": BatchStatus.COMPLETED})
        assert orchestrator.reschedule_now() == {}
        assert store.get(created.batch_id).status is BatchStatus.COMPLETED


class TestEditValidation:
    """Edits are converted or rejected up front so later passes keep running."""

    def test_string_deadline_edit_keeps_passes_running(self, orchestrator, store):
        from batch_allocation.types import BatchStatus

        first = orchestrator.create_batch(make_batch(batch_id=None))
        orchestrator.wait_idle()
        orchestrator.update_batch(first.batch_id, deadline="2025-01-20")
        second = orchestrator.create_batch(
            make_batch(batch_id=None, procedures={"painting": 5})
        )
        orchestrator.wait_idle()

        assert store.get(first.batch_id).deadline == date(2025, 1, 20)
        assert store.get(first.batch_id).status is BatchStatus.SCHEDULED
        assert store.get(second.batch_id).status is BatchStatus.SCHEDULED

    def test_mapping_procedures_edit(self, orchestrator, store):
        first = orchestrator.create_batch(make_batch(batch_id=None))
        orchestrator.update_batch(
            first.batch_id, procedures=[{"name": "painting", "quantity": 100}]
        )
        orchestrator.wait_idle()

        saved = store.get(first.batch_id)
        assert [(s.date, s.worker_count) for s in saved.segments] == [
            (day("mon"), 20)
        ]

    def test_invalid_edit_raises_to_caller(self, orchestrator, store):
        from batch_allocation.types import BatchStatus

        first = orchestrator.create_batch(make_batch(batch_id=None))
        orchestrator.wait_idle()
        with pytest.raises(ValueError, match="priority must be an integer"):
            orchestrator.update_batch(first.batch_id, priority="urgent")

        saved = store.get(first.batch_id)
        assert saved.status is BatchStatus.SCHEDULED
        assert saved.priority == 1

    def test_invalid_create_raises_to_caller(self, orchestrator, store):
        batch = make_batch(batch_id=None, procedures={"painting": 5})
        batch.deadline = None
        with pytest.raises(ValueError, match="missing 'deadline'"):
            orchestrator.create_batch(batch)
        assert len(store) == 0


class TestFailureIsolation:

    def test_failed_pass_does_not_fail_create(self, store, caplog):
        from batch_allocation.orchestrator import SchedulingOrchestrator
        from batch_allocation.types import BatchStatus

        flaky = _FlakyStore(store, failures=1)
        with SchedulingOrchestrator(flaky, clock=lambda: NOW) as orch:
            with caplog.at_level(logging.ERROR, logger="batch_allocation.orchestrator"):
                created = orch.create_batch(make_batch(batch_id=None))
                orch.request_pass()
                orch.wait_idle()

            assert "Allocation pass failed" in caplog.text
            assert "store unavailable" in caplog.text
            # The second queued pass still ran
            assert store.get(created.batch_id).status is BatchStatus.SCHEDULED

    def test_failed_pass_future_resolves_none(self, store):
        from batch_allocation.orchestrator import SchedulingOrchestrator

        flaky = _FlakyStore(store, failures=1)
        with SchedulingOrchestrator(flaky, clock=lambda: NOW) as orch:
            assert orch.request_pass().result() is None
            assert orch.request_pass().result() == {}

    def test_failed_pass_writes_nothing(self, store):
        """A pass that fails leaves every batch as previously persisted."""
        from batch_allocation.orchestrator import SchedulingOrchestrator
        from batch_allocation.types import BatchStatus

        created = store.insert(make_batch(batch_id=None))

        class _BrokenWriteStore(_FlakyStore):
            def save_allocations(self, batches):
                raise RuntimeError("write failed")

        with SchedulingOrchestrator(_BrokenWriteStore(store, 0), clock=lambda: NOW) as orch:
            assert orch.request_pass().result() is None

        saved = store.get(created.batch_id)
        assert saved.status is BatchStatus.PENDING
        assert saved.segments == []

    def test_reschedule_now_propagates(self, store):
        from batch_allocation.orchestrator import SchedulingOrchestrator

        with SchedulingOrchestrator(_FlakyStore(store), clock=lambda: NOW) as orch:
            with pytest.raises(ConnectionError):
                orch.reschedule_now()


class TestSerialisation:

    def test_passes_never_overlap(self, store):
        from batch_allocation.orchestrator import SchedulingOrchestrator

        lock = threading.Lock()
        state = {"running": 0, "peak": 0, "calls": 0}

        class _SlowStore(_FlakyStore):
            def fetch_active(self):
                with lock:
                    state["running"] += 1
                    state["calls"] += 1
                    state["peak"] = max(state["peak"], state["running"])
                time.sleep(0.01)
                with lock:
                    state["running"] -= 1
                return self._inner.fetch_active()

        store.insert(make_batch(batch_id=None))
        with SchedulingOrchestrator(_SlowStore(store, 0), clock=lambda: NOW) as orch:
            futures = [orch.request_pass() for _ in range(8)]
            callers = [
                threading.Thread(target=orch.reschedule_now) for _ in range(4)
            ]
            for t in callers:
                t.start()
            for t in callers:
                t.join()
            for f in futures:
                f.result()

        assert state["calls"] == 12
        assert state["peak"] == 1
