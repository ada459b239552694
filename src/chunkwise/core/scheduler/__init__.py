"""Bounded-concurrency task scheduling."""

from chunkwise.core.scheduler.models import (
    Err,
    Ok,
    PoolStatus,
    Retry,
    SizeBounds,
    Task,
    TaskResult,
    TaskState,
    Worker,
)
from chunkwise.core.scheduler.pool import WorkerPool
from chunkwise.core.scheduler.sizing import compute_target_size, measure_throughput

__all__ = [
    "Err",
    "Ok",
    "PoolStatus",
    "Retry",
    "SizeBounds",
    "Task",
    "TaskResult",
    "TaskState",
    "Worker",
    "WorkerPool",
    "compute_target_size",
    "measure_throughput",
]
