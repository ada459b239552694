"""Test doubles shared across the suite."""

import asyncio
from typing import Callable, List, Optional, Union

from chunkwise.core.providers.base import (
    CompletionRequest,
    CompletionResponse,
    SummarizationProvider,
)
from chunkwise.core.providers.rate_limits import RateLimitInfo
from chunkwise.core.resilience import is_transient
from chunkwise.core.scheduler import WorkerPool
from chunkwise.core.summarization import RetryingInvoker, SummarizationOrchestrator


class FakeClock:
    """Monotonic clock that only moves when a test (or fake sleep) moves it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        # Yield so other coroutines get a turn, as a real sleep would.
        await asyncio.sleep(0)


Responder = Callable[[CompletionRequest], Union[str, BaseException]]


class FakeProvider(SummarizationProvider):
    """Provider whose replies are decided by a test-supplied function.

    The responder returns the reply text, or an exception instance to raise.
    """

    name = "fake"

    def __init__(self, responder: Optional[Responder] = None, rate_limit: Optional[RateLimitInfo] = None):
        self.responder = responder or (lambda request: "summary")
        self.rate_limit = rate_limit or RateLimitInfo()
        self.requests: List[CompletionRequest] = []
        self.closed = False

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        await asyncio.sleep(0)
        outcome = self.responder(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return CompletionResponse(text=outcome, model=request.model, rate_limit=self.rate_limit)

    async def aclose(self) -> None:
        self.closed = True


def make_orchestrator(config, provider, clock):
    """Orchestrator over ``provider`` whose backoff waits go through ``clock``."""
    invoker = RetryingInvoker(
        provider,
        max_retries=config.max_retries,
        retry_base_delay=config.retry_base_delay,
        sleep_func=clock.sleep,
    )
    pool = WorkerPool(
        config.max_concurrent_requests,
        task_timeout=config.task_timeout,
        retry_base_delay=config.retry_base_delay,
        should_retry=is_transient,
        resize_interval=None,
        sleep_func=clock.sleep,
    )
    return SummarizationOrchestrator(config, invoker, pool)
