"""Bounded-concurrency worker pool with priorities, retries and timeouts.

Workers are concurrency permits on the event loop, not threads. Submitted
tasks wait in a priority heap and are handed to idle workers as slots free
up. Every execution ends in exactly one call to ``_settle``, which is the
only place that releases a worker and decrements the active count.

Example:
    async with WorkerPool(max_concurrent_requests=5) as pool:
        futures = [pool.submit(make_call(i), priority=10 - i) for i in range(10)]
        results = await asyncio.gather(*futures, return_exceptions=True)
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Optional

from ulid import ULID

from chunkwise.core.errors.scheduler import PoolClosedError, TaskTimeoutError
from chunkwise.core.observability import audit_log
from chunkwise.core.resilience.models import Clock, SleepFunc
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
    _QueueEntry,
)
from chunkwise.core.scheduler.sizing import (
    DEFAULT_RESIZE_THRESHOLD,
    compute_target_size,
    measure_throughput,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_PRIORITY_BOOST = 1_000_000


class WorkerPool:
    """Priority worker pool bounded by ``max_concurrent_requests``.

    Args:
        max_concurrent_requests: Upper bound on executing tasks and on pool size.
        min_workers: Lower bound the resize heuristic may shrink to.
        initial_workers: Starting size (defaults to the upper bound).
        task_timeout: Seconds an execution may hold its slot; None disables.
        cancel_on_timeout: Cancel a timed-out call instead of orphaning it.
        retry_base_delay: Backoff base; a retry waits ``base * 2**retries``.
        retry_priority_boost: Added to a task's priority on every retry.
        should_retry: Predicate limiting which errors earn a pool-level retry.
        resize_interval: Seconds between resize checks; None disables.
        resize_threshold: Relative change required before resizing.
        clock: Injectable monotonic clock.
        sleep_func: Injectable sleep used for retry backoff and the resize timer.
        name: Label used in logs.
    """

    def __init__(
        self,
        max_concurrent_requests: int = 4,
        *,
        min_workers: int = 1,
        initial_workers: Optional[int] = None,
        task_timeout: Optional[float] = 180.0,
        cancel_on_timeout: bool = False,
        retry_base_delay: float = 1.0,
        retry_priority_boost: int = DEFAULT_RETRY_PRIORITY_BOOST,
        should_retry: Optional[Callable[[BaseException], bool]] = None,
        resize_interval: Optional[float] = 180.0,
        resize_threshold: float = DEFAULT_RESIZE_THRESHOLD,
        clock: Optional[Clock] = None,
        sleep_func: Optional[SleepFunc] = None,
        name: str = "pool",
    ) -> None:
        if max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be at least 1")
        if not 1 <= min_workers <= max_concurrent_requests:
            raise ValueError("min_workers must be between 1 and max_concurrent_requests")

        self.max_concurrent_requests = max_concurrent_requests
        self.bounds = SizeBounds(min_workers, max_concurrent_requests)
        self.task_timeout = task_timeout
        self.cancel_on_timeout = cancel_on_timeout
        self.retry_base_delay = retry_base_delay
        self.retry_priority_boost = retry_priority_boost
        self.resize_interval = resize_interval
        self.resize_threshold = resize_threshold
        self.name = name
        self._should_retry = should_retry or (lambda _exc: True)
        self._clock = clock or time.monotonic
        self._sleep = sleep_func or asyncio.sleep

        self._queue: list[_QueueEntry] = []
        self._seq = itertools.count()
        self._workers: dict[str, Worker] = {}
        self._pending_retirements = 0
        self._active = 0

        self._executions: set[asyncio.Task[None]] = set()
        self._orphans: set[asyncio.Task[Any]] = set()
        self._retry_timers: dict[asyncio.Task[None], Task] = {}
        self._resize_task: Optional[asyncio.Task[None]] = None

        self._completed = 0
        self._failed = 0
        self._timed_out = 0
        self._completion_times: deque[float] = deque()
        self._closed = False

        size = initial_workers if initial_workers is not None else max_concurrent_requests
        for _ in range(max(self.bounds.min_workers, min(size, self.bounds.max_workers))):
            self._add_worker()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "WorkerPool":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    def start(self) -> None:
        """Start the periodic resize timer (dispatch works without it)."""
        if self._closed:
            raise PoolClosedError(f"Worker pool '{self.name}' is stopped")
        if self.resize_interval and self._resize_task is None:
            self._resize_task = asyncio.create_task(self._resize_loop(), name=f"{self.name}-resize")

    async def stop(self) -> None:
        """Reject queued work, then wait for executing tasks to settle."""
        if self._closed:
            return
        self._closed = True

        if self._resize_task is not None:
            self._resize_task.cancel()
            await asyncio.gather(self._resize_task, return_exceptions=True)
            self._resize_task = None

        for timer, task in list(self._retry_timers.items()):
            timer.cancel()
            self._reject(task, PoolClosedError(f"Worker pool '{self.name}' stopped"))
        self._retry_timers.clear()

        while self._queue:
            entry = heapq.heappop(self._queue)
            self._reject(entry.task, PoolClosedError(f"Worker pool '{self.name}' stopped"))

        if self._executions:
            await asyncio.gather(*list(self._executions), return_exceptions=True)

        for orphan in list(self._orphans):
            orphan.cancel()
        logger.debug(f"Worker pool '{self.name}' stopped", extra=self.status().to_dict())

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Submission and dispatch
    # ------------------------------------------------------------------

    def submit(
        self,
        fn: Callable[[], Awaitable[Any]],
        priority: int = 0,
        max_retries: int = 0,
    ) -> "asyncio.Future[Any]":
        """Queue ``fn`` and return a future for its eventual result.

        Raises:
            PoolClosedError: If the pool has been stopped.
        """
        if self._closed:
            raise PoolClosedError(f"Worker pool '{self.name}' is stopped")
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")

        loop = asyncio.get_running_loop()
        task = Task(
            id=str(ULID()),
            fn=fn,
            priority=priority,
            max_retries=max_retries,
            future=loop.create_future(),
            enqueued_at=self._clock(),
        )
        self._enqueue(task)
        self._process_queue()
        return task.future

    def _enqueue(self, task: Task) -> None:
        task.state = TaskState.QUEUED
        heapq.heappush(self._queue, _QueueEntry((-task.priority, next(self._seq)), task))

    def _idle_worker(self) -> Optional[Worker]:
        for worker in self._workers.values():
            if not worker.busy:
                return worker
        return None

    def _process_queue(self) -> None:
        while self._queue and self._active < self.max_concurrent_requests:
            worker = self._idle_worker()
            if worker is None:
                return
            task = heapq.heappop(self._queue).task
            if task.future.done():
                # Caller cancelled its future while the task was queued.
                continue
            self._dispatch(worker, task)

    def _dispatch(self, worker: Worker, task: Task) -> None:
        worker.busy = True
        worker.current_task_id = task.id
        self._active += 1
        task.state = TaskState.EXECUTING
        execution = asyncio.create_task(self._execute(worker, task), name=f"{self.name}-{task.id}")
        self._executions.add(execution)
        execution.add_done_callback(self._executions.discard)

    async def _execute(self, worker: Worker, task: Task) -> None:
        async def attempt() -> Any:
            return await task.fn()

        call = asyncio.create_task(attempt())
        result: TaskResult = Err(PoolClosedError(f"Worker pool '{self.name}' stopped"))
        try:
            done, _ = await asyncio.wait({call}, timeout=self.task_timeout)
            if call in done:
                if call.cancelled():
                    result = self._resolve(task, asyncio.CancelledError())
                elif call.exception() is not None:
                    result = self._resolve(task, call.exception())
                else:
                    result = Ok(call.result())
            else:
                self._handle_timeout(task, call)
                result = Err(
                    TaskTimeoutError(
                        f"Task {task.id} exceeded {self.task_timeout}s",
                        task_id=task.id,
                        timeout_seconds=self.task_timeout,
                    )
                )
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            self._settle(worker, task, result)

    def _resolve(self, task: Task, error: BaseException) -> TaskResult:
        """Turn a failed attempt into Retry or Err."""
        if (
            not self._closed
            and task.retries < task.max_retries
            and not isinstance(error, asyncio.CancelledError)
            and self._should_retry(error)
        ):
            return Retry(error, self.retry_base_delay * (2**task.retries))
        return Err(error)

    def _handle_timeout(self, task: Task, call: "asyncio.Task[Any]") -> None:
        audit_log(
            "task_timeout",
            task_id=task.id,
            timeout_seconds=self.task_timeout,
            cancelled=self.cancel_on_timeout,
        )
        logger.warning(
            f"Task {task.id} timed out after {self.task_timeout}s; "
            f"{'cancelling call' if self.cancel_on_timeout else 'result will be discarded'}"
        )
        if self.cancel_on_timeout:
            call.cancel()
            return
        self._orphans.add(call)
        call.add_done_callback(self._discard_orphan)

    def _discard_orphan(self, call: "asyncio.Task[Any]") -> None:
        self._orphans.discard(call)
        if not call.cancelled() and call.exception() is not None:
            logger.debug(f"Orphaned call finished with error: {call.exception()}")
        else:
            logger.debug("Orphaned call finished; result discarded")

    def _settle(self, worker: Worker, task: Task, result: TaskResult) -> None:
        """Single completion path for every execution."""
        worker.busy = False
        worker.current_task_id = None
        worker.last_active = self._clock()
        self._active -= 1
        self._retire_if_pending(worker)

        if isinstance(result, Ok):
            task.state = TaskState.COMPLETED
            self._completed += 1
            self._completion_times.append(self._clock())
            if not task.future.done():
                task.future.set_result(result.value)
        elif isinstance(result, Retry):
            task.state = TaskState.RETRYING
            task.retries += 1
            task.priority += self.retry_priority_boost
            audit_log(
                "task_retry",
                task_id=task.id,
                retry=task.retries,
                max_retries=task.max_retries,
                delay_seconds=result.delay,
                error=str(result.error)[:200],
            )
            timer = asyncio.create_task(self._requeue_after(task, result.delay))
            self._retry_timers[timer] = task
            timer.add_done_callback(lambda t: self._retry_timers.pop(t, None))
        else:
            if isinstance(result.error, TaskTimeoutError):
                task.state = TaskState.TIMED_OUT
                self._timed_out += 1
            else:
                task.state = TaskState.FAILED
                self._failed += 1
            self._reject(task, result.error)

        if not self._closed:
            self._process_queue()

    async def _requeue_after(self, task: Task, delay: float) -> None:
        await self._sleep(delay)
        if self._closed:
            self._reject(task, PoolClosedError(f"Worker pool '{self.name}' stopped"))
            return
        self._enqueue(task)
        self._process_queue()

    @staticmethod
    def _reject(task: Task, error: BaseException) -> None:
        if not task.future.done():
            task.future.set_exception(error)

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    def _add_worker(self) -> Worker:
        worker = Worker(id=f"{self.name}-worker-{ULID()}", last_active=self._clock())
        self._workers[worker.id] = worker
        return worker

    def _retire_if_pending(self, worker: Worker) -> None:
        if self._pending_retirements > 0 and worker.id in self._workers:
            del self._workers[worker.id]
            self._pending_retirements -= 1

    async def _resize_loop(self) -> None:
        assert self.resize_interval
        while True:
            await self._sleep(self.resize_interval)
            self.resize()

    def resize(self) -> int:
        """Sample throughput and move the pool toward its target size.

        Returns the target size. Growing takes effect immediately.
        Shrinking removes idle workers right away; busy workers are
        retired as they finish.
        """
        now = self._clock()
        window = self.resize_interval or 60.0
        while self._completion_times and now - self._completion_times[0] > window:
            self._completion_times.popleft()
        throughput = measure_throughput(self._completion_times, now, window)

        current = len(self._workers) - self._pending_retirements
        target = compute_target_size(throughput, current, self.bounds, self.resize_threshold)
        if target == current:
            return current

        if target > current:
            # Cancel outstanding retirements before adding workers.
            reclaimed = min(self._pending_retirements, target - current)
            self._pending_retirements -= reclaimed
            for _ in range(target - current - reclaimed):
                self._add_worker()
        else:
            excess = current - target
            idle = sorted(
                (w for w in self._workers.values() if not w.busy),
                key=lambda w: w.last_active,
            )
            for worker in idle[:excess]:
                del self._workers[worker.id]
            self._pending_retirements += max(0, excess - len(idle))

        audit_log(
            "pool_resize",
            pool=self.name,
            old_size=current,
            new_size=target,
            throughput_per_minute=round(throughput, 2),
        )
        logger.info(f"Resized worker pool '{self.name}' from {current} to {target} workers")
        self._process_queue()
        return target

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Workers currently held, including busy ones awaiting retirement."""
        return len(self._workers)

    @property
    def active(self) -> int:
        return self._active

    def status(self) -> PoolStatus:
        return PoolStatus(
            size=self.size,
            active=self._active,
            queued=len(self._queue) + len(self._retry_timers),
            completed=self._completed,
            failed=self._failed,
            timed_out=self._timed_out,
            orphaned=len(self._orphans),
        )
