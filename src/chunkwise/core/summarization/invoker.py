"""Retrying invoker: one summarization call with throttling and backoff.

Each attempt first takes a slot from the shared rate limiter, then makes a
single provider round trip. Transient failures (rate limited, overloaded)
are retried with exponential backoff; anything else surfaces at once.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from chunkwise.core.providers.base import (
    CompletionRequest,
    CompletionResponse,
    SummarizationProvider,
)
from chunkwise.core.resilience.models import Clock, SleepFunc
from chunkwise.core.resilience.rate_limiter import SlidingWindowRateLimiter
from chunkwise.core.resilience.retry import async_retry_with_backoff
from chunkwise.core.summarization.models import Summary

logger = logging.getLogger(__name__)


class RetryingInvoker:
    """Wraps a provider with rate limiting and transient-error retry.

    Args:
        provider: Backend performing the actual call.
        rate_limiter: Shared limiter; every attempt (retries included) takes a slot.
        max_retries: Retries after the first attempt for transient errors.
        retry_base_delay: Backoff base in seconds; retry n waits ``base * 2**n``.
        max_retry_delay: Cap on the computed backoff (retry-after hints may exceed it).
        clock: Injectable clock for elapsed-time measurement.
        sleep_func: Injectable sleep for backoff waits.
    """

    def __init__(
        self,
        provider: SummarizationProvider,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        *,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        max_retry_delay: float = 60.0,
        clock: Optional[Clock] = None,
        sleep_func: Optional[SleepFunc] = None,
    ) -> None:
        self.provider = provider
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.max_retry_delay = max_retry_delay
        self._clock = clock or time.perf_counter
        self._sleep = sleep_func

    async def _before_attempt(self, attempt: int) -> None:
        if self.rate_limiter is not None:
            waited = await self.rate_limiter.acquire()
            if waited:
                logger.debug(f"Waited {waited:.2f}s for a rate-limit slot (attempt {attempt + 1})")

    async def invoke(self, request: CompletionRequest, *, chunk_index: Optional[int] = None) -> Summary:
        """Run ``request`` to completion or terminal failure.

        Raises:
            LLMError: The terminal error, or the last transient one once
                retries are exhausted.
        """
        label = "single" if chunk_index is None else f"chunk {chunk_index + 1}"
        logger.debug(f"[{label}] invoking {request.model} ({len(request.user_prompt)} prompt chars)")
        started = self._clock()

        async def call() -> CompletionResponse:
            return await self.provider.complete(request)

        response = await async_retry_with_backoff(
            call,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.max_retry_delay,
            before_attempt=self._before_attempt,
            sleep_func=self._sleep,
        )

        elapsed_ms = int((self._clock() - started) * 1000)
        logger.info(f"[{label}] summarized with {response.model} in {elapsed_ms}ms")
        return Summary(
            text=response.text,
            model=response.model,
            elapsed_ms=elapsed_ms,
            source_chunk_index=chunk_index,
            rate_limit=response.rate_limit,
        )
