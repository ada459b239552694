"""Unified error hierarchy for chunkwise.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from chunkwise.core.errors import RateLimitError, AllChunksFailedError
    from chunkwise.core.errors import error_to_response
"""

from chunkwise.core.errors.base import ERROR_MAPPINGS, error_to_response
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
    SummarizationError,
)

__all__ = [
    # Registry
    "ERROR_MAPPINGS",
    "error_to_response",
    # LLM
    "LLMError",
    "RateLimitError",
    "OverloadedError",
    "AuthenticationError",
    "InvalidRequestError",
    "ModelNotFoundError",
    "ProviderTimeoutError",
    "ProviderConnectionError",
    # Summarization
    "SummarizationError",
    "EmptyContentError",
    "AllChunksFailedError",
    "MetaSummaryError",
    # Scheduler
    "TaskTimeoutError",
    "PoolClosedError",
]
