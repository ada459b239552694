"""Resilience primitives: error classification, rate limiting, retry."""

from chunkwise.core.resilience.classification import classify_error, is_transient
from chunkwise.core.resilience.models import (
    Clock,
    ErrorClassification,
    ErrorType,
    RateLimitStatus,
    SleepFunc,
)
from chunkwise.core.resilience.rate_limiter import SlidingWindowRateLimiter
from chunkwise.core.resilience.retry import async_retry_with_backoff, backoff_delay

__all__ = [
    "Clock",
    "ErrorClassification",
    "ErrorType",
    "RateLimitStatus",
    "SleepFunc",
    "SlidingWindowRateLimiter",
    "async_retry_with_backoff",
    "backoff_delay",
    "classify_error",
    "is_transient",
]
