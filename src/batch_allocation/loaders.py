"""Data loading utilities for allocator configuration and batch fixtures."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from batch_allocation.config import AllocatorConfig
from batch_allocation.schema import validate_batch, validate_config
from batch_allocation.types import Batch, BatchStatus, ProcedureRequirement


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    # Accept full ISO datetimes; only the day matters
    return date.fromisoformat(str(value)[:10])


def batch_from_dict(data: dict) -> Batch:
    """Build a Batch from a plain mapping.

    Expected keys: name, procedures [{name, quantity}], deadline; optional
    id, project_name, priority, start_date, status.
    """
    return Batch(
        batch_id=data.get("id"),
        name=data["name"],
        project_name=data.get("project_name", ""),
        procedures=[
            ProcedureRequirement(p["name"], p["quantity"])
            for p in data["procedures"]
        ],
        priority=data.get("priority", 0),
        start_date=_parse_date(data.get("start_date")),
        deadline=_parse_date(data["deadline"]),
        status=BatchStatus(data.get("status", BatchStatus.PENDING.value)),
    )


def load_config_json(path: str | Path) -> AllocatorConfig:
    """Load an AllocatorConfig from a JSON file.

    The JSON file has the format:
    {
        "pool_size": 30,
        "horizon_days": 60,
        "rest_days": [4, 5],
        "rates": { "door_assembly": 1, ... },
        "reconstruct_history": false
    }
    Every key is optional; missing keys keep their defaults.

    Raises ValueError if validation fails.
    """
    path = Path(path)
    with open(path) as f:
        data = json.load(f)

    cfg = data.get("allocator", data)
    defaults = AllocatorConfig()
    pool_size = cfg.get("pool_size", defaults.pool_size)
    horizon_days = cfg.get("horizon_days", defaults.horizon_days)
    rest_days = cfg.get("rest_days", list(defaults.rest_days))
    rates = cfg.get("rates", dict(defaults.rates))

    errors = validate_config(pool_size, horizon_days, rest_days, rates)
    if errors:
        raise ValueError(
            f"Validation errors in {path.name}:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    return AllocatorConfig(
        pool_size=pool_size,
        rates=rates,
        horizon_days=horizon_days,
        rest_days=tuple(rest_days),
        reconstruct_history=bool(cfg.get("reconstruct_history", False)),
    )


def load_batches_json(path: str | Path) -> list[Batch]:
    """Load batches from a JSON file.

    The JSON must have the format:
    {
        "batches": [
            { "id": "...", "name": "...", "priority": 1,
              "deadline": "2025-01-31",
              "procedures": [{"name": "painting", "quantity": 40}] },
            ...
        ]
    }

    Raises ValueError if validation fails.
    """
    path = Path(path)
    with open(path) as f:
        data = json.load(f)

    raw = data["batches"] if isinstance(data, dict) else data
    errors: list[str] = []
    for entry in raw:
        errors.extend(validate_batch(entry))
    if errors:
        raise ValueError(
            f"Validation errors in {path.name}:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    return [batch_from_dict(entry) for entry in raw]
