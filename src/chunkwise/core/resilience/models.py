"""Resilience data models, enums, and protocols.

Defines the core types used across the resilience sub-package:
- ErrorType enum for error classification
- ErrorClassification for retry decisions
- RateLimitStatus for observability
- SleepFunc / Clock protocols for injectable time control
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class ErrorType(str, Enum):
    """Classification of error types for resilience decisions."""

    RATE_LIMIT = "rate_limit"
    OVERLOADED = "overloaded"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


@dataclass
class ErrorClassification:
    """Classification result for an error.

    Determines whether a failed call is worth another attempt, and the
    minimum wait the upstream asked for before that attempt.
    """

    retryable: bool
    error_type: ErrorType = ErrorType.UNKNOWN
    backoff_seconds: Optional[float] = None


@dataclass
class RateLimitStatus:
    """Snapshot of a rate limiter's window."""

    limit: int
    used: int
    remaining: int
    waiting: int
    reset_in: float


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...


class Clock(Protocol):
    """Protocol for injectable monotonic clock."""

    def __call__(self) -> float: ...
