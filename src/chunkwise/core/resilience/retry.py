"""Async retry with exponential backoff driven by error classification.

Unlike a blanket "retry on any exception" loop, every failure is passed
through a classifier first: terminal errors are re-raised on the spot and
only transient ones are retried.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from chunkwise.core.observability import audit_log
from chunkwise.core.resilience.classification import classify_error
from chunkwise.core.resilience.models import ErrorClassification, SleepFunc

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(
    retry_number: int,
    *,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    minimum: Optional[float] = None,
) -> float:
    """Delay before retry ``retry_number`` (1-based): ``base * 2**n``.

    With the default base this gives 2s, 4s, 8s. A server-supplied
    ``minimum`` (e.g. a retry-after hint) is honored even above ``max_delay``.
    """
    delay = min(base_delay * (2.0**retry_number), max_delay)
    if minimum is not None:
        delay = max(delay, minimum)
    return delay


async def async_retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = False,
    classify: Callable[[BaseException], ErrorClassification] = classify_error,
    before_attempt: Optional[Callable[[int], Awaitable[None]]] = None,
    rng: Optional[random.Random] = None,
    sleep_func: Optional[SleepFunc] = None,
) -> T:
    """Call ``func`` until it succeeds, a terminal error occurs or retries run out.

    Args:
        func: Async function to retry (no arguments; use lambda for args).
        max_retries: Retries after the first attempt (default 3).
        base_delay: Backoff base in seconds (default 1.0).
        max_delay: Cap for the computed backoff (default 60.0).
        jitter: Scale each computed delay by 50-150% (default False).
        classify: Error classifier deciding retryability.
        before_attempt: Awaited before every attempt with the 0-based
            attempt number (used to take a rate-limiter slot per attempt).
        rng: Injectable Random instance for deterministic testing.
        sleep_func: Injectable sleep function for time control in tests.

    Returns:
        Result from the function on success.

    Raises:
        Exception: The terminal error, or the last transient error once
            ``max_retries`` retries have failed.

    Testing example:
        >>> sleep_times = []
        >>> async def fake_sleep(s): sleep_times.append(s)
        >>> await async_retry_with_backoff(func, sleep_func=fake_sleep)
    """
    _rng = rng or random.Random()
    _sleep = sleep_func or asyncio.sleep

    attempt = 0
    while True:
        if before_attempt is not None:
            await before_attempt(attempt)
        try:
            return await func()
        except Exception as e:
            classification = classify(e)
            if not classification.retryable:
                raise
            if attempt >= max_retries:
                logger.warning(
                    f"Giving up after {attempt + 1} attempts: {e}",
                    extra={"error_type": classification.error_type.value},
                )
                raise

            attempt += 1
            delay = backoff_delay(
                attempt,
                base_delay=base_delay,
                max_delay=max_delay,
                minimum=classification.backoff_seconds,
            )
            if jitter and classification.backoff_seconds is None:
                delay = delay * (0.5 + _rng.random())

            audit_log(
                "retry_attempt",
                attempt=attempt,
                max_attempts=max_retries + 1,
                error_type=classification.error_type.value,
                error_message=str(e)[:200],
                delay_seconds=round(delay, 3),
            )
            logger.info(f"Transient {classification.error_type.value} error; retry {attempt}/{max_retries} in {delay:.1f}s")
            await _sleep(delay)
