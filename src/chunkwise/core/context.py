"""Request-scoped context for chunkwise.

Holds the correlation id of the summarization run currently executing so
that log records and audit events from every layer (rate limiter, invoker,
worker pool) can be tied back to one request.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from ulid import ULID

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id(prefix: str = "run") -> str:
    """Generate a new sortable correlation id, e.g. ``run-01J...``."""
    return f"{prefix}-{ULID()}"


def get_correlation_id() -> str:
    """Get the correlation id of the current context ("" if unset)."""
    return correlation_id.get()


@contextmanager
def correlation_scope(value: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    Tasks created inside the block copy the context, so work dispatched to
    the worker pool keeps the id of the run that submitted it.
    """
    cid = value or generate_correlation_id()
    token = correlation_id.set(cid)
    try:
        yield cid
    finally:
        correlation_id.reset(token)
