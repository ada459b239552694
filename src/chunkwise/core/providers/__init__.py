"""LLM provider interface and implementations."""

from chunkwise.core.providers.anthropic import AnthropicProvider, raise_for_status
from chunkwise.core.providers.base import (
    CompletionRequest,
    CompletionResponse,
    SummarizationProvider,
)
from chunkwise.core.providers.rate_limits import (
    RateLimitInfo,
    parse_rate_limit_headers,
    parse_retry_after,
)

__all__ = [
    "AnthropicProvider",
    "CompletionRequest",
    "CompletionResponse",
    "RateLimitInfo",
    "SummarizationProvider",
    "parse_rate_limit_headers",
    "parse_retry_after",
    "raise_for_status",
]
