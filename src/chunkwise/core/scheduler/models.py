"""Data types for the worker pool."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union


class TaskState(str, Enum):
    """Lifecycle of a scheduled task.

    queued -> executing -> completed | failed | timed_out
                        -> retrying -> queued (boosted priority)
    """

    QUEUED = "queued"
    EXECUTING = "executing"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(eq=False)
class Task:
    """A unit of scheduled work, owned by the pool until it settles.

    Attributes:
        id: ULID task identifier
        fn: Zero-argument coroutine function performing one attempt
        priority: Higher values are dispatched first
        max_retries: Pool-level retries after the first attempt
        future: Resolved exactly once with the task's result or error
        enqueued_at: Clock reading at submission
        retries: Retries consumed so far
        state: Current lifecycle state
    """

    id: str
    fn: Callable[[], Awaitable[Any]]
    priority: int
    max_retries: int
    future: "asyncio.Future[Any]"
    enqueued_at: float
    retries: int = 0
    state: TaskState = TaskState.QUEUED


@dataclass
class Worker:
    """A concurrency slot. Not a thread; just a permit with bookkeeping."""

    id: str
    busy: bool = False
    last_active: float = 0.0
    current_task_id: Optional[str] = None


@dataclass(frozen=True)
class SizeBounds:
    """Inclusive bounds on the number of workers."""

    min_workers: int
    max_workers: int


@dataclass
class PoolStatus:
    """Point-in-time counters for a worker pool.

    ``queued`` includes tasks waiting out a retry backoff. ``orphaned``
    counts timed-out calls that are still running in the background.
    """

    size: int
    active: int
    queued: int
    completed: int
    failed: int
    timed_out: int
    orphaned: int

    def to_dict(self) -> dict[str, int]:
        return {
            "size": self.size,
            "active": self.active,
            "queued": self.queued,
            "completed": self.completed,
            "failed": self.failed,
            "timed_out": self.timed_out,
            "orphaned": self.orphaned,
        }


# Outcome of one execution attempt, decided before the task is settled.


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Retry:
    error: BaseException
    delay: float


@dataclass(frozen=True)
class Err:
    error: BaseException


TaskResult = Union[Ok, Retry, Err]


@dataclass(order=True)
class _QueueEntry:
    """Heap entry: highest priority first, then submission order."""

    sort_key: tuple[int, int]
    task: Task = field(compare=False)
