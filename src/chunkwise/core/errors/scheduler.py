"""Worker pool error classes."""

from __future__ import annotations

from typing import Optional


class TaskTimeoutError(Exception):
    """A scheduled task exceeded its slot timeout.

    The underlying call is not cancelled unless the pool was configured
    with ``cancel_on_timeout``; its eventual result is discarded.

    Attributes:
        task_id: Identifier of the timed-out task
        timeout_seconds: The timeout that was exceeded
    """

    def __init__(
        self,
        message: str,
        *,
        task_id: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(message)
        self.task_id = task_id
        self.timeout_seconds = timeout_seconds


class PoolClosedError(RuntimeError):
    """Raised for work submitted to (or still queued in) a stopped pool."""

    pass
