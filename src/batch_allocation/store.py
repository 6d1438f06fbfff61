"""In-memory batch store: identity, working-set queries, allocation write-back."""

from __future__ import annotations

import copy
import dataclasses
import logging
import threading
import uuid
from typing import Any, Iterable

from batch_allocation.schema import validate_batch
from batch_allocation.types import (
    Batch,
    BatchNotFoundError,
    BatchStatus,
    ProcedureRequirement,
)

logger = logging.getLogger(__name__)

# Fields a client may change through update(). Derived fields are included so
# an edit can reset a stale allocation in the same write.
UPDATABLE_FIELDS = frozenset({
    "name",
    "project_name",
    "procedures",
    "priority",
    "start_date",
    "deadline",
    "status",
    "schedule",
    "segments",
})


def _check_fields(fields: dict[str, Any]) -> None:
    """Reject values an allocation pass could not order or walk.

    Raises ValueError listing every problem.
    """
    procedures = fields["procedures"]
    if isinstance(procedures, list):
        procedures = [
            dataclasses.asdict(p) if isinstance(p, ProcedureRequirement) else p
            for p in procedures
        ]
    errors = validate_batch({
        "id": fields["batch_id"],
        "name": fields["name"],
        "deadline": fields["deadline"],
        "start_date": fields["start_date"],
        "priority": fields["priority"],
        "procedures": procedures,
    })
    if errors:
        raise ValueError(
            "Invalid batch:\n" + "\n".join(f"  - {e}" for e in errors)
        )


class InMemoryBatchStore:
    """Thread-safe batch store. Every read and write goes through deep copies.

    Each record carries a revision, bumped by every client update.
    save_allocations() only writes a batch whose revision still matches the
    stored one, so a pass never overwrites an edit made while it ran.
    """

    def __init__(self, batches: Iterable[Batch] = ()) -> None:
        self._lock = threading.Lock()
        self._batches: dict[str, Batch] = {}
        for batch in batches:
            self.insert(batch)

    def insert(self, batch: Batch) -> Batch:
        """Store a new batch under a fresh id. Returns the stored copy.

        Raises ValueError if the batch would not survive an allocation pass.
        """
        _check_fields(vars(batch))
        record = copy.deepcopy(batch)
        record.batch_id = uuid.uuid4().hex
        record.status = BatchStatus.PENDING
        record.schedule = None
        record.segments = []
        record.revision = 0
        with self._lock:
            self._batches[record.batch_id] = record
            return copy.deepcopy(record)

    def get(self, batch_id: str) -> Batch:
        with self._lock:
            return copy.deepcopy(self._record(batch_id))

    def list_all(self) -> list[Batch]:
        with self._lock:
            return [copy.deepcopy(b) for b in self._batches.values()]

    def fetch_active(self) -> list[Batch]:
        """Working set of an allocation pass: pending and scheduled batches."""
        with self._lock:
            return [
                copy.deepcopy(b) for b in self._batches.values() if b.is_active
            ]

    def update(self, batch_id: str, changes: dict[str, Any]) -> Batch:
        """Set the given fields on a batch and bump its revision.

        The merged record is validated before anything is written; invalid
        changes raise ValueError and leave the stored batch untouched.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        with self._lock:
            current = self._record(batch_id)
            values = {
                "name": current.name,
                "procedures": current.procedures,
                "deadline": current.deadline,
                "priority": current.priority,
                "project_name": current.project_name,
                "start_date": current.start_date,
                "batch_id": current.batch_id,
                "status": current.status,
                "schedule": current.schedule,
                "segments": current.segments,
                "revision": current.revision + 1,
            }
            values.update(copy.deepcopy(changes))
            _check_fields(values)
            # Rebuilding runs Batch.__post_init__ normalisation on the new values
            record = Batch(**values)
            self._batches[batch_id] = record
            return copy.deepcopy(record)

    def delete(self, batch_id: str) -> None:
        with self._lock:
            self._record(batch_id)
            del self._batches[batch_id]

    def save_allocations(self, batches: Iterable[Batch]) -> int:
        """Persist {status, schedule, segments} per batch, all three at once.

        Batches deleted or edited since they were fetched are skipped.
        Returns the number of batches written.
        """
        written = 0
        stale = 0
        with self._lock:
            for batch in batches:
                record = self._batches.get(batch.batch_id)
                if record is None or record.revision != batch.revision:
                    stale += 1
                    continue
                record.status = batch.status
                record.schedule = batch.schedule
                record.segments = list(batch.segments)
                written += 1
        if stale:
            logger.info(f"Skipped {stale} batch(es) changed during the pass")
        return written

    def _record(self, batch_id: str) -> Batch:
        try:
            return self._batches[batch_id]
        except KeyError:
            raise BatchNotFoundError(batch_id) from None

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)
