"""Allocator: priority-ordered greedy assignment of batches onto a worker pool.

A pass sorts the working set by priority, then walks each batch forward day
by day from its start, letting its procedures claim that day's free workers
in declared order. The daily ledger is threaded through the batches as a
value: each batch sees only the capacity left by the batches ahead of it.

Every pass re-simulates from scratch. Previous segments are discarded, so
the same input snapshot and the same "now" always yield the same result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping, Sequence

from batch_allocation.calendar import WorkWeek
from batch_allocation.config import DEFAULT_CONFIG, AllocatorConfig
from batch_allocation.ledger import DailyLedger, DateKey
from batch_allocation.types import (
    POOL_WORKER_ID,
    Batch,
    BatchStatus,
    ProcedureOutput,
    ProcedureRequirement,
    SchedulePointer,
    Segment,
)

logger = logging.getLogger(__name__)

ScheduleIndex = dict[date, list[Batch]]


@dataclass(frozen=True)
class BatchAllocation:
    """Outcome of walking one batch through the calendar.

    Invariants:
        - segments are sorted by date, one per date
        - segments is empty unless every remaining quantity is zero
    """

    batch_id: str | None
    segments: tuple[Segment, ...]
    remaining: tuple[tuple[str, int], ...]
    days_evaluated: int

    @property
    def schedulable(self) -> bool:
        return bool(self.segments) and all(q == 0 for _, q in self.remaining)

    @property
    def first_date(self) -> date | None:
        return self.segments[0].date if self.segments else None

    @property
    def total_workers(self) -> int:
        """Worker-days used across all segments."""
        return sum(s.worker_count for s in self.segments)


@dataclass(frozen=True)
class PassResult:
    """Everything one pass produced: the date index, final ledger, outcomes."""

    index: ScheduleIndex
    ledger: DailyLedger
    allocations: tuple[BatchAllocation, ...]

    @property
    def unschedulable(self) -> tuple[BatchAllocation, ...]:
        return tuple(a for a in self.allocations if not a.schedulable)


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def sort_batches(batches: Iterable[Batch]) -> list[Batch]:
    """Commitment order: priority descending, then earliest deadline.

    sorted() is stable, so batches with equal keys keep their input order.
    """
    return sorted(batches, key=lambda b: (-b.priority, b.deadline))


def allocate_day(
    remaining: Sequence[ProcedureRequirement],
    available: int | None,
    config: AllocatorConfig = DEFAULT_CONFIG,
) -> tuple[ProcedureOutput, ...]:
    """Greedily hand one day's workers to a batch's procedures, in order.

    Mutates the quantities in `remaining`. `available=None` means the day is
    unbounded (a past day). Each procedure asks for the workers that would
    finish it today; earlier procedures are served first.

    Returns one ProcedureOutput per procedure that received workers (empty
    when the day has no free workers or nothing is left to do).
    """
    unbounded = available is None
    if not unbounded and available <= 0:
        return ()

    outputs: list[ProcedureOutput] = []
    for proc in remaining:
        if proc.quantity <= 0:
            continue
        if not unbounded and available <= 0:
            break

        rate = config.rate_for(proc.name)
        needed = -(-proc.quantity // rate)
        allocate = needed if unbounded else min(needed, available)
        produced = min(allocate * rate, proc.quantity)

        proc.quantity -= produced
        outputs.append(ProcedureOutput(proc.name, produced, allocate))
        if not unbounded:
            available -= allocate

    return tuple(outputs)


def _walk_start(batch: Batch, now: date, config: AllocatorConfig) -> date:
    if batch.start_date is None:
        return now
    if config.reconstruct_history:
        return batch.start_date
    return max(batch.start_date, now)


def allocate_batch(
    batch: Batch,
    now: date | datetime,
    ledger: DailyLedger,
    config: AllocatorConfig = DEFAULT_CONFIG,
) -> tuple[BatchAllocation, DailyLedger]:
    """Walk one batch forward through the calendar. Does NOT mutate the batch.

    Days before `now` are past: unbounded capacity, ledger untouched. Other
    days draw from and write back to the ledger. Rest days are skipped
    without consuming the horizon.

    If work remains after `config.horizon_days` evaluated days, the segments
    are dropped. Capacity already committed to the ledger on the batch's
    behalf stays committed.

    Returns:
        (allocation, updated ledger)
    """
    now = _as_day(now)
    remaining = [p.copy() for p in batch.procedures]
    week = WorkWeek(config.rest_days)

    segments: list[Segment] = []
    days_evaluated = 0
    for day in week.working_days(_walk_start(batch, now, config)):
        if all(p.quantity == 0 for p in remaining):
            break
        if days_evaluated >= config.horizon_days:
            break
        days_evaluated += 1

        past = day < now
        available = None if past else ledger.available(day, config.pool_size)
        outputs = allocate_day(remaining, available, config)
        workers = sum(o.workers_used for o in outputs)
        if workers == 0:
            continue

        segments.append(Segment(day, workers, outputs))
        if not past:
            ledger = ledger.commit(day, workers)

    done = all(p.quantity == 0 for p in remaining)
    allocation = BatchAllocation(
        batch_id=batch.batch_id,
        segments=tuple(segments) if done else (),
        remaining=tuple((p.name, p.quantity) for p in remaining),
        days_evaluated=days_evaluated,
    )
    return allocation, ledger


def apply_allocation(batch: Batch, allocation: BatchAllocation) -> None:
    """Write an allocation's derived fields onto the batch."""
    if allocation.schedulable:
        batch.segments = list(allocation.segments)
        batch.schedule = SchedulePointer(POOL_WORKER_ID, allocation.first_date)
        batch.status = BatchStatus.SCHEDULED
    else:
        batch.segments = []
        batch.schedule = None
        batch.status = BatchStatus.PENDING


def _same_batch(a: Batch, b: Batch) -> bool:
    return a is b or (a.batch_id is not None and a.batch_id == b.batch_id)


def run_pass(
    batches: Iterable[Batch],
    now: date | datetime,
    initial_usage: DailyLedger | Mapping[DateKey, int] | None = None,
    config: AllocatorConfig = DEFAULT_CONFIG,
) -> PassResult:
    """Allocate every batch in commitment order, mutating derived fields.

    Args:
        batches: Working set (pending and scheduled batches).
        now: Reference day. Earlier days are history.
        initial_usage: Workers already committed per day by other passes.
        config: Pool size, rates, horizon and rest days.

    Returns:
        PassResult with the date index, final ledger and per-batch outcomes.
    """
    now = _as_day(now)
    if isinstance(initial_usage, DailyLedger):
        ledger = initial_usage
    else:
        ledger = DailyLedger(initial_usage)

    index: ScheduleIndex = {}
    allocations: list[BatchAllocation] = []
    for batch in sort_batches(batches):
        allocation, ledger = allocate_batch(batch, now, ledger, config)
        apply_allocation(batch, allocation)
        allocations.append(allocation)

        if allocation.schedulable:
            logger.debug(
                f"Batch {batch.batch_id} ({batch.name}) scheduled: "
                f"{len(allocation.segments)} day(s) from {allocation.first_date}, "
                f"{allocation.total_workers} worker-days"
            )
        else:
            logger.info(
                f"Batch {batch.batch_id} ({batch.name}) left pending after "
                f"{allocation.days_evaluated} working day(s); remaining "
                f"{dict(allocation.remaining)}"
            )

        for segment in batch.segments:
            day_batches = index.setdefault(segment.date, [])
            if not any(_same_batch(b, batch) for b in day_batches):
                day_batches.append(batch)

    scheduled = sum(1 for a in allocations if a.schedulable)
    logger.info(
        f"Allocation pass for {now}: {scheduled}/{len(allocations)} batches "
        f"scheduled across {len(index)} day(s)"
    )
    return PassResult(dict(sorted(index.items())), ledger, tuple(allocations))


def schedule_batches(
    batches: Iterable[Batch],
    now: date | datetime,
    initial_usage: DailyLedger | Mapping[DateKey, int] | None = None,
    config: AllocatorConfig = DEFAULT_CONFIG,
) -> ScheduleIndex:
    """Run one allocation pass and return the date -> batches index.

    Each batch's segments, schedule and status are rewritten in place.
    """
    return run_pass(batches, now, initial_usage, config).index
