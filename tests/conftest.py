"""Shared test fixtures and data loading for batch-allocation.

All test data lives in data/fixtures/ as JSON files.  This module loads
that data and exposes helper functions + pytest fixtures for the tests.

Reference week: Mon 2025-01-06 through Mon 2025-01-13.
Rest days: Fri 2025-01-10 and Sat 2025-01-11.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
FIXTURES_DIR = Path(__file__).resolve().parent.parent / "data" / "fixtures"
SCENARIOS_DIR = FIXTURES_DIR / "scenarios"


# ---------------------------------------------------------------------------
# Data loaders
# ---------------------------------------------------------------------------
def _load_json(path: Path):
    with open(path) as f:
        return json.load(f)


_reference = _load_json(FIXTURES_DIR / "reference.json")
_configs = _load_json(FIXTURES_DIR / "configs.json")


# ---------------------------------------------------------------------------
# Reference constants derived from reference.json
# ---------------------------------------------------------------------------
NOW = date.fromisoformat(_reference["now"])

# Day lookup:  DAYS["mon"] → date(2025, 1, 6)
DAYS: dict[str, date] = {
    d["name"]: date.fromisoformat(d["date"]) for d in _reference["days"]
}
WORKING: dict[str, bool] = {d["name"]: d["working"] for d in _reference["days"]}


def day(name: str) -> date:
    """Date object for a named reference day."""
    return DAYS[name]


# ---------------------------------------------------------------------------
# Config factory
# ---------------------------------------------------------------------------
def make_config(name: str = "standard", **overrides):
    """Build an AllocatorConfig from configs.json by name."""
    from batch_allocation.config import AllocatorConfig

    raw = dict(_configs[name])
    raw.pop("description", None)
    raw["rest_days"] = tuple(raw["rest_days"])
    raw.update(overrides)
    return AllocatorConfig(**raw)


# ---------------------------------------------------------------------------
# Batch factory
# ---------------------------------------------------------------------------
def make_batch(
    batch_id: str | None = "B1",
    procedures: dict[str, int] | list[tuple[str, int]] | None = None,
    priority: int = 1,
    deadline: date | str = "2025-01-31",
    start_date: date | str | None = None,
    name: str | None = None,
):
    """Build a Batch with sensible defaults (40 door units, priority 1)."""
    from batch_allocation.types import Batch, ProcedureRequirement

    if procedures is None:
        procedures = {"door_assembly": 40}
    items = procedures.items() if isinstance(procedures, dict) else procedures
    if isinstance(deadline, str):
        deadline = date.fromisoformat(deadline)
    if isinstance(start_date, str):
        start_date = date.fromisoformat(start_date)
    return Batch(
        batch_id=batch_id,
        name=name or f"Batch {batch_id}",
        procedures=[ProcedureRequirement(n, q) for n, q in items],
        priority=priority,
        deadline=deadline,
        start_date=start_date,
    )


def segment_rows(batch) -> list[dict]:
    """Segments in the fixture comparison format."""
    return [
        {
            "date": s.date.isoformat(),
            "worker_count": s.worker_count,
            "procedures": [
                [p.procedure_name, p.quantity_produced, p.workers_used]
                for p in s.completed_procedures
            ],
        }
        for s in batch.segments
    ]


# ---------------------------------------------------------------------------
# Scenario loader
# ---------------------------------------------------------------------------
def load_scenarios(name: str):
    """Load a scenario file from data/fixtures/scenarios/{name}.json."""
    return _load_json(SCENARIOS_DIR / f"{name}.json")


def fixture_path(name: str) -> Path:
    """Path of a top-level fixture file, e.g. fixture_path("batches.json")."""
    return FIXTURES_DIR / name


# ---------------------------------------------------------------------------
# pytest fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def now() -> date:
    return NOW


@pytest.fixture
def standard_config():
    return make_config("standard")


@pytest.fixture
def small_config():
    """10 workers, 5 working-day horizon."""
    return make_config("small")


@pytest.fixture
def history_config():
    """Standard pool with past-day reconstruction enabled."""
    return make_config("history")


@pytest.fixture
def empty_ledger():
    from batch_allocation.ledger import DailyLedger

    return DailyLedger()
