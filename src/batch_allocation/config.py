"""Allocator configuration: worker pool, procedure rates, horizon, rest days."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from batch_allocation.schema import validate_config

DEFAULT_POOL_SIZE = 30
DEFAULT_HORIZON_DAYS = 60

# Friday and Saturday (date.weekday() numbering), the end of a Sunday-first week
DEFAULT_REST_DAYS = (4, 5)

DEFAULT_RATES: Mapping[str, int] = MappingProxyType({
    "door_assembly": 1,
    "window_frame": 2,
    "painting": 5,
})


@dataclass(frozen=True)
class AllocatorConfig:
    """Settings injected into every allocation pass. Immutable.

    rates maps a procedure name to units one worker produces in one day.
    Procedures missing from the table run at rate 1.
    """

    pool_size: int = DEFAULT_POOL_SIZE
    rates: Mapping[str, int] = field(default_factory=lambda: DEFAULT_RATES)
    horizon_days: int = DEFAULT_HORIZON_DAYS
    rest_days: tuple[int, ...] = DEFAULT_REST_DAYS
    reconstruct_history: bool = False

    def __post_init__(self) -> None:
        rates = dict(self.rates) if isinstance(self.rates, Mapping) else self.rates
        rest_days = self.rest_days
        if isinstance(rest_days, (list, set, frozenset)):
            rest_days = tuple(sorted(rest_days))
        errors = validate_config(
            self.pool_size, self.horizon_days, rest_days, rates
        )
        if errors:
            raise ValueError(
                "Invalid allocator configuration:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )
        object.__setattr__(self, "rates", MappingProxyType(rates))
        object.__setattr__(self, "rest_days", rest_days)

    def rate_for(self, procedure_name: str) -> int:
        """Units per worker per day for a procedure (1 if unknown)."""
        return self.rates.get(procedure_name, 1)


DEFAULT_CONFIG = AllocatorConfig()
