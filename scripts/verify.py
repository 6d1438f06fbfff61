#!/usr/bin/env python
"""Visual verification report for batch-allocation.

Run:  uv run python scripts/verify.py

Produces a formatted report showing:
  1. Reference data (reference week, rest days)
  2. Allocator configurations (pool, horizon, rate table)
  3. Allocator scenarios  -- expected vs actual segments per batch
  4. Sample working set  -- ASCII pool view of data/fixtures/batches.json
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths and data loading
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
FIXTURES = ROOT / "data" / "fixtures"
SCENARIOS = FIXTURES / "scenarios"

sys.path.insert(0, str(ROOT / "src"))

from batch_allocation.allocator import run_pass, schedule_batches
from batch_allocation.config import AllocatorConfig
from batch_allocation.debug import show_batch, show_schedule
from batch_allocation.loaders import batch_from_dict, load_batches_json


def _load(path: Path):
    with open(path) as f:
        return json.load(f)


_ref = _load(FIXTURES / "reference.json")
_cfgs = _load(FIXTURES / "configs.json")

NOW = date.fromisoformat(_ref["now"])
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------
WIDTH = 90


def banner(title: str):
    print()
    print("=" * WIDTH)
    print(f"  {title}")
    print("=" * WIDTH)


def heading(title: str):
    print()
    print(f"  {title}")
    print(f"  {'-' * (len(title) + 2)}")


def table(headers: list[str], rows: list[list[str]], indent: int = 4):
    """Print a formatted table with auto-sized columns."""
    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            col_widths[i] = max(col_widths[i], len(cell))

    pad = " " * indent
    fmt = pad + "  ".join(f"{{:<{w}}}" for w in col_widths)
    sep = pad + "  ".join("-" * w for w in col_widths)

    print(fmt.format(*headers))
    print(sep)
    for row in rows:
        padded = row + [""] * (len(headers) - len(row))
        print(fmt.format(*padded))


def _fmt_day(iso: str) -> str:
    """Format ISO date as 'Mon 06 Jan'."""
    d = date.fromisoformat(iso)
    return f"{DAY_NAMES[d.weekday()]} {d.strftime('%d %b')}"


def _make_config(name: str) -> AllocatorConfig:
    raw = dict(_cfgs[name])
    raw.pop("description", None)
    raw["rest_days"] = tuple(raw["rest_days"])
    return AllocatorConfig(**raw)


def _segment_str(rows) -> str:
    if not rows:
        return "(none)"
    return "; ".join(
        f"{_fmt_day(r['date'])} {r['worker_count']}w" for r in rows
    )


# ---------------------------------------------------------------------------
# Section 1: Reference Data
# ---------------------------------------------------------------------------
def section_reference():
    banner("REFERENCE DATA")
    print(f"\n    Now:            {NOW.strftime('%A %Y-%m-%d')}")
    print(f"    {_ref['description']}")

    heading("Reference Days")
    rows = []
    for d in _ref["days"]:
        rows.append([
            d["name"], d["date"], DAY_NAMES[d["weekday"]],
            "working" if d["working"] else "rest",
        ])
    table(["Name", "Date", "Day", "Type"], rows)


# ---------------------------------------------------------------------------
# Section 2: Configurations
# ---------------------------------------------------------------------------
def section_configs():
    banner("ALLOCATOR CONFIGURATIONS")

    rows = []
    for name, cfg in _cfgs.items():
        rest = ", ".join(DAY_NAMES[d] for d in cfg["rest_days"]) or "(none)"
        rates = ", ".join(f"{k}={v}" for k, v in cfg["rates"].items())
        rows.append([
            name, str(cfg["pool_size"]), str(cfg["horizon_days"]), rest,
            "yes" if cfg.get("reconstruct_history") else "no", rates,
        ])
    table(["Name", "Pool", "Horizon", "Rest days", "History", "Rates"], rows)


# ---------------------------------------------------------------------------
# Section 3: Allocator Scenarios
# ---------------------------------------------------------------------------
def section_scenarios():
    banner("ALLOCATOR SCENARIOS")

    data = _load(SCENARIOS / "allocator.json")

    heading("Function: schedule_batches(batches, now, initial_usage, config)")
    print("    Sorts by priority, walks each batch day by day, fills greedily.\n")
    rows = []
    for s in data["schedule"]:
        batches = [batch_from_dict(b) for b in s["batches"]]
        schedule_batches(
            batches,
            date.fromisoformat(s["now"]),
            s.get("initial_usage"),
            _make_config(s["config"]),
        )
        by_id = {b.batch_id: b for b in batches}
        for batch_id, expected in s["expected"].items():
            batch = by_id[batch_id]
            actual = [
                {
                    "date": seg.date.isoformat(),
                    "worker_count": seg.worker_count,
                    "procedures": [
                        [p.procedure_name, p.quantity_produced, p.workers_used]
                        for p in seg.completed_procedures
                    ],
                }
                for seg in batch.segments
            ]
            match = (
                "OK"
                if actual == expected["segments"]
                and batch.status.value == expected["status"]
                else "FAIL"
            )
            rows.append([
                s["id"], batch_id, batch.status.value,
                _segment_str(actual), match,
            ])
    table(["ID", "Batch", "Status", "Segments", ""], rows)


# ---------------------------------------------------------------------------
# Section 4: Sample Working Set
# ---------------------------------------------------------------------------
def section_sample():
    banner("SAMPLE WORKING SET")

    config = _make_config("standard")
    batches = load_batches_json(FIXTURES / "batches.json")
    result = run_pass(batches, NOW, None, config)

    heading("Pool view (. = rest day, - = free)")
    print()
    show_schedule(result.index, NOW, NOW + timedelta(days=14), config)

    heading("Batches")
    for batch in batches:
        print()
        show_batch(batch)

    heading("Final ledger")
    rows = [
        [_fmt_day(d.isoformat()), str(result.ledger.committed(d)),
         str(result.ledger.available(d, config.pool_size))]
        for d in result.ledger
    ]
    table(["Day", "Committed", "Free"], rows)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    banner("BATCH-ALLOCATION   --  VISUAL VERIFICATION REPORT")
    print(f"    Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    print(f"    Fixture data: {FIXTURES.relative_to(ROOT)}/")

    section_reference()
    section_configs()
    section_scenarios()
    section_sample()

    banner("END OF REPORT")
    print()


if __name__ == "__main__":
    main()
