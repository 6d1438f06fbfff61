"""ASCII visualisation for development-time verification.

This module is dev-only and not imported by production code.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from batch_allocation.calendar import WorkWeek
from batch_allocation.config import DEFAULT_CONFIG, AllocatorConfig

if TYPE_CHECKING:
    from batch_allocation.allocator import ScheduleIndex
    from batch_allocation.types import Batch

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def show_schedule(
    index: ScheduleIndex,
    start: date,
    end: date,
    config: AllocatorConfig = DEFAULT_CONFIG,
) -> str:
    """Print ASCII pool view showing workers per batch for a date range.

    Each row is one day. The bar has one char per worker in the pool:
    'A'-'Z' = worker assigned to a batch, '-' = free, '.' = rest day.
    Returns the string and also prints to stdout.

    Args:
        index: date -> batches mapping returned by schedule_batches()
        start: First date to show (inclusive)
        end: Last date to show (exclusive)
        config: Supplies pool size and rest days
    """
    week = WorkWeek(config.rest_days)
    lines: list[str] = []

    # Build batch label map: batch_id -> letter, in order of first appearance
    labels: dict[str, str] = {}
    label_chars = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    for day in sorted(index):
        for batch in index[day]:
            key = batch.batch_id or batch.name
            if key not in labels:
                labels[key] = label_chars[len(labels) % len(label_chars)]

    lines.append(f"{'':>12s}  {'pool':<{config.pool_size}s}  used")

    current = start
    while current < end:
        label = f"{DAY_NAMES[current.weekday()]} {current.strftime('%d %b')}"

        if not week.is_working_day(current):
            lines.append(f"{label:>12s}  {'.' * config.pool_size}")
            current += timedelta(days=1)
            continue

        row: list[str] = []
        for batch in index.get(current, []):
            workers = sum(s.worker_count for s in batch.segments if s.date == current)
            row.extend(labels[batch.batch_id or batch.name] * workers)
        used = len(row)
        # Past days are unbounded and may overflow the pool width
        bar = "".join(row[: config.pool_size]).ljust(config.pool_size, "-")
        overflow = "+" if used > config.pool_size else " "
        lines.append(f"{label:>12s}  {bar}{overflow} {used:>3d}/{config.pool_size}")

        current += timedelta(days=1)

    if labels:
        legend_parts = [f"{v}={k}" for k, v in labels.items()]
        lines.append(f"\nLegend: . = rest day, - = free, {', '.join(legend_parts)}")

    result = "\n".join(lines)
    print(result)
    return result


def show_batch(batch: Batch) -> str:
    """Print a batch's segments, one line per day with per-procedure output.

    Returns the string and also prints to stdout.
    """
    lines = [
        f"{batch.name} [{batch.status.value}] priority={batch.priority} "
        f"deadline={batch.deadline.isoformat()}"
    ]
    if not batch.segments:
        lines.append("    (no segments)")
    for segment in batch.segments:
        day_name = DAY_NAMES[segment.date.weekday()]
        parts = ", ".join(
            f"{p.procedure_name} {p.quantity_produced} ({p.workers_used}w)"
            for p in segment.completed_procedures
        )
        lines.append(
            f"    {day_name} {segment.date.isoformat()}  "
            f"{segment.worker_count:>3d} workers  {parts}"
        )

    result = "\n".join(lines)
    print(result)
    return result
