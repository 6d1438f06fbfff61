"""WorkWeek: horizon-free working-day calendar."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Iterator

_ONE_DAY = timedelta(days=1)


class WorkWeek:
    """Weekly pattern of rest days. Answers working-day queries by lazy walk.

    rest_days uses date.weekday() numbering (Monday = 0 ... Sunday = 6).
    """

    def __init__(self, rest_days: Iterable[int]) -> None:
        self.rest_days = frozenset(rest_days)
        if len(self.rest_days) >= 7:
            raise ValueError("A work week needs at least one working day")

    def is_working_day(self, d: date) -> bool:
        return d.weekday() not in self.rest_days

    def next_working_day(self, d: date) -> date:
        """First working day on or after d."""
        while not self.is_working_day(d):
            d += _ONE_DAY
        return d

    def working_days(self, start: date) -> Iterator[date]:
        """Yield working days from start (inclusive) onwards, forever.

        Rest days are skipped and never yielded, so a caller counting
        yielded days counts working days only.
        """
        current = start
        while True:
            if self.is_working_day(current):
                yield current
            current += _ONE_DAY

    def working_days_between(self, start: date, end: date) -> int:
        """Count working days in [start, end)."""
        total = 0
        current = start
        while current < end:
            if self.is_working_day(current):
                total += 1
            current += _ONE_DAY
        return total
