"""Orchestrator: batch mutations that trigger allocation passes on one queue.

Passes read the whole working set and write derived fields back, so two
passes must never overlap. All passes run on a single worker thread, in the
order they were requested. Requesting a pass never blocks the caller.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import Any, Callable

from batch_allocation.allocator import ScheduleIndex, schedule_batches
from batch_allocation.config import DEFAULT_CONFIG, AllocatorConfig
from batch_allocation.store import InMemoryBatchStore
from batch_allocation.types import Batch, BatchStatus

logger = logging.getLogger(__name__)


class SchedulingOrchestrator:
    """Creates, edits and deletes batches and keeps their schedule current.

    Creating or editing a batch enqueues a full re-run. A queued pass that
    fails is logged and dropped: the triggering request has already
    succeeded, and later passes still run.
    """

    def __init__(
        self,
        store: InMemoryBatchStore,
        config: AllocatorConfig = DEFAULT_CONFIG,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.config = config
        self._clock = clock
        self._queue = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="allocation-pass"
        )

    # ------------------------------------------------------------------
    # Batch mutations
    # ------------------------------------------------------------------

    def create_batch(self, batch: Batch) -> Batch:
        """Store a new batch and enqueue a pass. Invalid batches raise ValueError."""
        created = self.store.insert(batch)
        logger.info(f"Created batch {created.batch_id} ({created.name})")
        self.request_pass()
        return created

    def update_batch(self, batch_id: str, **changes: Any) -> Batch:
        """Edit a batch. Its previous allocation is cleared before the re-run.

        Invalid changes raise ValueError and enqueue nothing.
        """
        changes.update(
            status=BatchStatus.PENDING,
            schedule=None,
            segments=[],
        )
        updated = self.store.update(batch_id, changes)
        logger.info(f"Updated batch {batch_id}")
        self.request_pass()
        return updated

    def delete_batch(self, batch_id: str) -> None:
        self.store.delete(batch_id)
        logger.info(f"Deleted batch {batch_id}")

    # ------------------------------------------------------------------
    # Allocation passes
    # ------------------------------------------------------------------

    def request_pass(self) -> Future:
        """Enqueue a pass. Failures are logged, never raised to the caller."""
        return self._queue.submit(self._run_pass_logged)

    def reschedule_now(self) -> ScheduleIndex:
        """Run a pass on the queue and wait for it. Errors propagate."""
        return self._queue.submit(self.run_pass).result()

    def run_pass(self) -> ScheduleIndex:
        """Fetch the working set, allocate it and persist derived fields.

        Runs in the calling thread; use request_pass() or reschedule_now()
        to keep passes serialised.
        """
        batches = self.store.fetch_active()
        if not batches:
            logger.debug("No active batches; nothing to allocate")
            return {}

        index = schedule_batches(batches, self._clock(), None, self.config)
        written = self.store.save_allocations(batches)
        logger.info(f"Persisted allocation for {written}/{len(batches)} batches")
        return index

    def _run_pass_logged(self) -> ScheduleIndex | None:
        try:
            return self.run_pass()
        except Exception:
            logger.exception("Allocation pass failed")
            return None

    def wait_idle(self) -> None:
        """Block until every pass queued so far has finished."""
        self._queue.submit(lambda: None).result()

    def close(self) -> None:
        self._queue.shutdown(wait=True)

    def __enter__(self) -> SchedulingOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
