"""DailyLedger: workers already committed per calendar day within one pass.

The ledger is an immutable value. Each allocation step receives one and
returns the updated ledger, so its evolution across batches can be inspected
step by step.
"""

from __future__ import annotations

from datetime import date, datetime
from types import MappingProxyType
from typing import Iterator, Mapping, Union

DateKey = Union[date, datetime, str]


def _to_date(key: DateKey) -> date:
    if isinstance(key, datetime):
        return key.date()
    if isinstance(key, date):
        return key
    return date.fromisoformat(str(key)[:10])


class DailyLedger:
    """Mapping of date -> workers committed on that date. Immutable.

    Only present and future days are recorded; past days run with unbounded
    capacity and never touch the ledger.
    """

    __slots__ = ("_usage",)

    def __init__(self, usage: Mapping[DateKey, int] | None = None) -> None:
        normalised: dict[date, int] = {}
        for key, workers in (usage or {}).items():
            if workers < 0:
                raise ValueError(
                    f"Committed workers must be >= 0, got {workers} for {key}"
                )
            d = _to_date(key)
            normalised[d] = normalised.get(d, 0) + workers
        self._usage = MappingProxyType(normalised)

    def committed(self, d: date) -> int:
        """Workers already committed on d."""
        return self._usage.get(d, 0)

    def available(self, d: date, pool_size: int) -> int:
        """Workers still free on d, never negative."""
        return max(pool_size - self.committed(d), 0)

    def commit(self, d: date, workers: int) -> DailyLedger:
        """Return a new ledger with `workers` more committed on d."""
        if workers < 0:
            raise ValueError(f"Cannot commit a negative worker count ({workers})")
        usage = dict(self._usage)
        usage[d] = usage.get(d, 0) + workers
        return DailyLedger(usage)

    def total(self) -> int:
        return sum(self._usage.values())

    def as_dict(self) -> dict[date, int]:
        return dict(sorted(self._usage.items()))

    def __iter__(self) -> Iterator[date]:
        return iter(sorted(self._usage))

    def __len__(self) -> int:
        return len(self._usage)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DailyLedger):
            return NotImplemented
        return dict(self._usage) == dict(other._usage)

    def __repr__(self) -> str:
        days = ", ".join(f"{d.isoformat()}={w}" for d, w in self.as_dict().items())
        return f"DailyLedger({days})"
