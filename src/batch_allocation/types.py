"""Shared types: batches, procedures, segments and store errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

POOL_WORKER_ID = "pool"


def _as_date(value: date | datetime | str | None) -> date | None:
    """Drop the time of day; the allocator works at day granularity.

    ISO strings are accepted; anything after the date part is ignored.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


class BatchStatus(str, Enum):
    """Lifecycle of a batch.

    PENDING is "awaiting allocation", SCHEDULED is "allocated".
    """

    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


ACTIVE_STATUSES = frozenset({BatchStatus.PENDING, BatchStatus.SCHEDULED})


@dataclass
class ProcedureRequirement:
    """A named procedure and the quantity still to be produced."""

    name: str
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(
                f"procedure {self.name!r}: quantity must be >= 0, "
                f"got {self.quantity}"
            )

    def copy(self) -> ProcedureRequirement:
        return ProcedureRequirement(self.name, self.quantity)


@dataclass(frozen=True)
class ProcedureOutput:
    """Output of one procedure on one day."""

    procedure_name: str
    quantity_produced: int
    workers_used: int


@dataclass(frozen=True)
class Segment:
    """One calendar day of work committed to a batch.

    Invariants:
        - worker_count == sum(p.workers_used for p in completed_procedures)
        - worker_count > 0
    """

    date: date
    worker_count: int
    completed_procedures: tuple[ProcedureOutput, ...]

    def produced(self, procedure_name: str) -> int:
        """Units of `procedure_name` produced on this day."""
        return sum(
            p.quantity_produced
            for p in self.completed_procedures
            if p.procedure_name == procedure_name
        )


@dataclass(frozen=True)
class SchedulePointer:
    """Aggregate schedule of a batch: the shared pool and its first day."""

    worker_id: str
    date: date


@dataclass
class Batch:
    """A unit of production work.

    `procedures`, `priority`, `start_date` and `deadline` belong to whoever
    created the batch. `status`, `schedule` and `segments` are derived and
    regenerated by every allocation pass. `revision` is owned by the store.

    Procedures given as {name, quantity} mappings and ISO date strings are
    converted on construction.
    """

    name: str
    procedures: list[ProcedureRequirement]
    deadline: date
    priority: int = 0
    project_name: str = ""
    start_date: date | None = None
    batch_id: str | None = None
    status: BatchStatus = BatchStatus.PENDING
    schedule: SchedulePointer | None = None
    segments: list[Segment] = field(default_factory=list)
    revision: int = 0

    def __post_init__(self) -> None:
        self.procedures = [
            p if isinstance(p, ProcedureRequirement)
            else ProcedureRequirement(p["name"], p["quantity"])
            for p in self.procedures
        ]
        self.deadline = _as_date(self.deadline)
        self.start_date = _as_date(self.start_date)
        self.status = BatchStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def produced(self, procedure_name: str) -> int:
        """Units of `procedure_name` produced across all segments."""
        return sum(s.produced(procedure_name) for s in self.segments)


class BatchNotFoundError(KeyError):
    """Raised when the store holds no batch with the requested id."""

    def __init__(self, batch_id: str) -> None:
        self.batch_id = batch_id
        super().__init__(f"No batch with id {batch_id!r}")

    def __str__(self) -> str:
        return self.args[0]
