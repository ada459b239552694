"""Transient vs. terminal error classification.

This is the single place that decides whether a failed summarization call
may be retried. Only an upstream that says "not now" (429 rate limited,
503/529 overloaded) is transient. Bad input, auth failures, timeouts and
connection errors are terminal and surface immediately.
"""

from __future__ import annotations

from typing import Optional

from chunkwise.core.errors.llm import (
    AuthenticationError,
    InvalidRequestError,
    ModelNotFoundError,
    OverloadedError,
    ProviderConnectionError,
    ProviderTimeoutError,
    RateLimitError,
)
from chunkwise.core.resilience.models import ErrorClassification, ErrorType

RATE_LIMIT_STATUS = 429
OVERLOADED_STATUSES = frozenset({503, 529})


def _status_of(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


def classify_error(error: BaseException) -> ErrorClassification:
    """Classify an exception raised by a summarization call.

    Exception types from ``chunkwise.core.errors`` are classified by type;
    anything else is classified by an integer ``status_code``/``status``
    attribute when it carries one, and is terminal otherwise.
    """
    if isinstance(error, RateLimitError):
        return ErrorClassification(
            retryable=True,
            error_type=ErrorType.RATE_LIMIT,
            backoff_seconds=error.retry_after,
        )
    if isinstance(error, OverloadedError):
        return ErrorClassification(retryable=True, error_type=ErrorType.OVERLOADED)
    if isinstance(error, AuthenticationError):
        return ErrorClassification(retryable=False, error_type=ErrorType.AUTHENTICATION)
    if isinstance(error, (InvalidRequestError, ModelNotFoundError)):
        return ErrorClassification(retryable=False, error_type=ErrorType.INVALID_REQUEST)
    if isinstance(error, ProviderTimeoutError):
        return ErrorClassification(retryable=False, error_type=ErrorType.TIMEOUT)
    if isinstance(error, ProviderConnectionError):
        return ErrorClassification(retryable=False, error_type=ErrorType.NETWORK)

    status = _status_of(error)
    if status == RATE_LIMIT_STATUS:
        return ErrorClassification(
            retryable=True,
            error_type=ErrorType.RATE_LIMIT,
            backoff_seconds=getattr(error, "retry_after", None),
        )
    if status in OVERLOADED_STATUSES:
        return ErrorClassification(retryable=True, error_type=ErrorType.OVERLOADED)
    if status in (401, 403):
        return ErrorClassification(retryable=False, error_type=ErrorType.AUTHENTICATION)
    if status is not None and 400 <= status < 500:
        return ErrorClassification(retryable=False, error_type=ErrorType.INVALID_REQUEST)

    return ErrorClassification(retryable=False, error_type=ErrorType.UNKNOWN)


def is_transient(error: BaseException) -> bool:
    """Shorthand for ``classify_error(error).retryable``."""
    return classify_error(error).retryable
