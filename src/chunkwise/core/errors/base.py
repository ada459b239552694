"""Error-to-ErrorCode mapping registry.

Provides a centralized mapping from exception types to (ErrorCode, ErrorType)
tuples so the CLI and the MCP tools describe failures the same way.

Usage:
    from chunkwise.core.errors.base import error_to_response

    try:
        result = await orchestrator.summarize(text)
    except Exception as e:
        response = error_to_response(e)
        if response is None:
            raise  # Unknown error, re-raise
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional, Tuple, Type

from chunkwise.core.errors.llm import (
    AuthenticationError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    OverloadedError,
    ProviderConnectionError,
    ProviderTimeoutError,
    RateLimitError,
)
from chunkwise.core.errors.scheduler import PoolClosedError, TaskTimeoutError
from chunkwise.core.errors.summarization import (
    AllChunksFailedError,
    EmptyContentError,
    MetaSummaryError,
)
from chunkwise.core.responses import ErrorCode, ErrorType, error_response

ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, ErrorType]] = {
    # --- LLM errors ---
    LLMError: (ErrorCode.AI_PROVIDER_ERROR, ErrorType.AI_PROVIDER),
    RateLimitError: (ErrorCode.RATE_LIMIT_EXCEEDED, ErrorType.RATE_LIMIT),
    OverloadedError: (ErrorCode.AI_PROVIDER_OVERLOADED, ErrorType.UNAVAILABLE),
    AuthenticationError: (ErrorCode.UNAUTHORIZED, ErrorType.AUTHENTICATION),
    InvalidRequestError: (ErrorCode.VALIDATION_ERROR, ErrorType.VALIDATION),
    ModelNotFoundError: (ErrorCode.AI_NO_PROVIDER, ErrorType.NOT_FOUND),
    ProviderTimeoutError: (ErrorCode.AI_PROVIDER_TIMEOUT, ErrorType.UNAVAILABLE),
    ProviderConnectionError: (ErrorCode.UNAVAILABLE, ErrorType.UNAVAILABLE),
    # --- Summarization errors ---
    EmptyContentError: (ErrorCode.MISSING_REQUIRED, ErrorType.VALIDATION),
    AllChunksFailedError: (ErrorCode.OPERATION_FAILED, ErrorType.AI_PROVIDER),
    MetaSummaryError: (ErrorCode.OPERATION_FAILED, ErrorType.AI_PROVIDER),
    # --- Scheduler errors ---
    TaskTimeoutError: (ErrorCode.AI_PROVIDER_TIMEOUT, ErrorType.UNAVAILABLE),
    PoolClosedError: (ErrorCode.UNAVAILABLE, ErrorType.UNAVAILABLE),
}


def _user_message(exc: Exception) -> Tuple[str, Dict[str, Any]]:
    """User-facing message plus extra payload for the distinguished failures."""
    if isinstance(exc, RateLimitError):
        retry_after = exc.retry_after if exc.retry_after is not None else 60
        return "Rate limit exceeded. Please try again later.", {"retry_after": retry_after}
    if isinstance(exc, OverloadedError):
        return (
            "The AI service is currently overloaded. Please try again later.",
            {"is_overloaded": True},
        )
    if isinstance(exc, AllChunksFailedError):
        # Surface the distinguished cause of the last chunk failure, if any.
        last = exc.last_error
        if isinstance(last, (RateLimitError, OverloadedError)):
            message, extra = _user_message(last)
            return f"{exc} - {message}", {**extra, **exc.to_dict()}
        return str(exc), exc.to_dict()
    return f"Summarization failed: {exc}", {}


def error_to_response(exc: Exception) -> Optional[dict]:
    """Convert a known exception to a standard error_response dict, or None if unknown.

    Looks up the exception's *exact* type in ERROR_MAPPINGS and, if found,
    generates a standardized error response using the mapped ErrorCode and
    ErrorType. Rate-limit failures carry ``retry_after`` and overload failures
    carry ``is_overloaded`` so clients can tell them apart from generic errors.
    """
    mapping = ERROR_MAPPINGS.get(type(exc))
    if mapping is None:
        return None

    code, error_type = mapping
    message, extra = _user_message(exc)
    return asdict(error_response(message, data=extra, error_code=code, error_type=error_type))
