"""
Provider abstractions for chunkwise.

A provider performs exactly one model round trip per ``complete`` call.
Retrying, throttling and scheduling all live above this layer, so
implementations should raise the classified errors from
``chunkwise.core.errors.llm`` and never retry on their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from chunkwise.core.providers.rate_limits import RateLimitInfo


@dataclass(frozen=True)
class CompletionRequest:
    """One summarization call.

    Attributes:
        system_prompt: System instructions
        user_prompt: The user turn (instructions plus the text to summarize)
        model: Model identifier
        max_tokens: Output token cap
        temperature: Sampling temperature
    """

    system_prompt: str
    user_prompt: str
    model: str
    max_tokens: int
    temperature: float


@dataclass(frozen=True)
class CompletionResponse:
    """Text returned by the model plus what the provider reported about limits."""

    text: str
    model: str
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)


class SummarizationProvider(ABC):
    """Contract for LLM backends."""

    name: str = "provider"

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Perform one completion.

        Raises:
            RateLimitError: Upstream rate limit (429)
            OverloadedError: Upstream overloaded (503/529)
            AuthenticationError, InvalidRequestError, ModelNotFoundError,
            ProviderTimeoutError, ProviderConnectionError, LLMError: terminal
        """

    async def aclose(self) -> None:
        """Release any held resources (HTTP connections)."""
        return None

    async def __aenter__(self) -> "SummarizationProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
