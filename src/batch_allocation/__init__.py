"""batch-allocation: greedy allocation of production batches onto a shared worker pool."""

from batch_allocation.allocator import (
    BatchAllocation,
    PassResult,
    allocate_batch,
    allocate_day,
    apply_allocation,
    run_pass,
    schedule_batches,
    sort_batches,
)
from batch_allocation.calendar import WorkWeek
from batch_allocation.config import DEFAULT_CONFIG, DEFAULT_RATES, AllocatorConfig
from batch_allocation.ledger import DailyLedger
from batch_allocation.orchestrator import SchedulingOrchestrator
from batch_allocation.store import InMemoryBatchStore
from batch_allocation.types import (
    POOL_WORKER_ID,
    Batch,
    BatchNotFoundError,
    BatchStatus,
    ProcedureOutput,
    ProcedureRequirement,
    SchedulePointer,
    Segment,
)

__all__ = [
    "AllocatorConfig",
    "Batch",
    "BatchAllocation",
    "BatchNotFoundError",
    "BatchStatus",
    "DEFAULT_CONFIG",
    "DEFAULT_RATES",
    "DailyLedger",
    "InMemoryBatchStore",
    "POOL_WORKER_ID",
    "PassResult",
    "ProcedureOutput",
    "ProcedureRequirement",
    "SchedulePointer",
    "SchedulingOrchestrator",
    "Segment",
    "WorkWeek",
    "allocate_batch",
    "allocate_day",
    "apply_allocation",
    "run_pass",
    "schedule_batches",
    "sort_batches",
]
