"""Summarization orchestrator.

Decides between the direct single-call path and the chunked path, fans
chunk summaries out through the worker pool, and folds the results into
one summary. Progress is reported as ``SummarizeEvent`` objects.

Example:
    async with SummarizationOrchestrator.from_config(config) as orchestrator:
        result = await orchestrator.summarize(text)
        print(result.summary)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from functools import partial
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

from chunkwise.config import SummarizerConfig
from chunkwise.core.chunking import Chunk, chunk_text, merge_small_chunks
from chunkwise.core.context import correlation_scope, get_correlation_id
from chunkwise.core.errors.llm import LLMError, OverloadedError, RateLimitError
from chunkwise.core.errors.summarization import (
    AllChunksFailedError,
    EmptyContentError,
    MetaSummaryError,
)
from chunkwise.core.observability import audit_log
from chunkwise.core.providers.anthropic import AnthropicProvider
from chunkwise.core.providers.base import CompletionRequest, SummarizationProvider
from chunkwise.core.providers.rate_limits import RateLimitInfo
from chunkwise.core.resilience.classification import is_transient
from chunkwise.core.resilience.rate_limiter import SlidingWindowRateLimiter
from chunkwise.core.scheduler.pool import WorkerPool
from chunkwise.core.summarization.content import resolve_content_type, select_model
from chunkwise.core.summarization.events import SummarizeEvent
from chunkwise.core.summarization.invoker import RetryingInvoker
from chunkwise.core.summarization.merge import (
    concatenate_parts,
    failed_chunk_placeholder,
    merge_summaries,
)
from chunkwise.core.summarization.models import (
    AggregationStrategy,
    ContentType,
    Summary,
    SummaryMode,
    SummaryResult,
)
from chunkwise.core.summarization.prompts import (
    SYSTEM_PROMPT,
    build_meta_summary_prompt,
    build_summary_prompt,
)

logger = logging.getLogger(__name__)

EventCallback = Callable[[SummarizeEvent], Union[None, Awaitable[None]]]

_STREAM_END = object()


class SummarizationOrchestrator:
    """Runs summarization requests against an invoker and a worker pool.

    The rate limiter and the pool are constructed once (see ``from_config``)
    and shared by every run, so concurrent runs draw on one request budget.
    """

    def __init__(
        self,
        config: SummarizerConfig,
        invoker: RetryingInvoker,
        pool: WorkerPool,
    ) -> None:
        self.config = config
        self.invoker = invoker
        self.pool = pool

    @classmethod
    def from_config(
        cls,
        config: SummarizerConfig,
        provider: Optional[SummarizationProvider] = None,
    ) -> "SummarizationOrchestrator":
        """Wire provider, rate limiter, invoker and pool from ``config``."""
        if provider is None:
            provider = AnthropicProvider(
                config.api_key,
                base_url=config.base_url,
                timeout=config.request_timeout,
            )
        limiter = SlidingWindowRateLimiter(config.api_requests_per_minute)
        invoker = RetryingInvoker(
            provider,
            limiter,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay,
        )
        pool = WorkerPool(
            config.max_concurrent_requests,
            min_workers=config.min_workers,
            task_timeout=config.task_timeout,
            cancel_on_timeout=config.cancel_on_timeout,
            retry_base_delay=config.retry_base_delay,
            should_retry=is_transient,
            resize_interval=config.resize_interval,
            resize_threshold=config.resize_threshold,
            name="chunks",
        )
        return cls(config, invoker, pool)

    async def __aenter__(self) -> "SummarizationOrchestrator":
        self.pool.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.pool.stop()
        await self.invoker.provider.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def summarize(
        self,
        text: str,
        mode: SummaryMode = SummaryMode.AUTO,
        on_event: Optional[EventCallback] = None,
    ) -> SummaryResult:
        """Summarize ``text``.

        Args:
            text: Input text (code or documentation).
            mode: Prompt emphasis; AUTO detects the content type.
            on_event: Optional sync or async callback receiving progress events.

        Raises:
            EmptyContentError: If ``text`` is empty or whitespace.
            AllChunksFailedError: If every chunk failed.
            LLMError: Terminal provider failure on the direct path.
            MetaSummaryError: Meta-summary failed and fallback is disabled.
        """
        # Joins the caller's correlation id (e.g. an MCP tool call) when one is bound.
        with correlation_scope(get_correlation_id() or None):
            try:
                return await self._run(text, SummaryMode(mode), on_event)
            except Exception as e:
                await self._emit(on_event, self._error_event(e))
                raise
            finally:
                await self._emit(on_event, SummarizeEvent.complete())

    async def stream(self, text: str, mode: SummaryMode = SummaryMode.AUTO) -> AsyncIterator[SummarizeEvent]:
        """Run ``summarize`` and yield its events as they happen.

        Failures are delivered as an ``error`` event followed by ``complete``
        rather than raised.
        """
        queue: asyncio.Queue[object] = asyncio.Queue()

        async def run() -> None:
            try:
                await self.summarize(text, mode, on_event=queue.put_nowait)
            except Exception as e:
                logger.debug(f"Streamed summarization failed: {e}")
            finally:
                queue.put_nowait(_STREAM_END)

        runner = asyncio.create_task(run())
        try:
            while True:
                item = await queue.get()
                if item is _STREAM_END:
                    break
                assert isinstance(item, SummarizeEvent)
                yield item
        finally:
            if not runner.done():
                runner.cancel()
            await asyncio.gather(runner, return_exceptions=True)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, text: str, mode: SummaryMode, on_event: Optional[EventCallback]) -> SummaryResult:
        if not text or not text.strip():
            raise EmptyContentError()

        started = time.perf_counter()
        await self._emit(on_event, SummarizeEvent.processing())
        content_type = resolve_content_type(text, mode)
        logger.info(f"Summarizing {len(text)} chars as {content_type.value}")

        if len(text) <= self.config.small_content_threshold:
            await self._emit(on_event, SummarizeEvent.info(f"Processing {len(text)} characters directly"))
            summary = await self._summarize_text(text, content_type, None)
            result = SummaryResult(
                summary=summary.text,
                model=summary.model,
                aggregation=AggregationStrategy.DIRECT,
                content_type=content_type,
                rate_limit=summary.rate_limit,
            )
        else:
            result = await self._run_chunked(text, content_type, on_event)

        result.elapsed_ms = int((time.perf_counter() - started) * 1000)
        await self._emit(on_event, SummarizeEvent.result(result.summary, data=result.to_dict()))
        logger.info(
            f"Summary ready via {result.aggregation.value} in {result.elapsed_ms}ms",
            extra={"chunk_count": result.chunk_count, "failed_chunks": len(result.failed_chunks)},
        )
        return result

    def split(self, text: str) -> list[Chunk]:
        """Chunk ``text`` the way a run would (before the per-run cap)."""
        chunks = chunk_text(text, self.config.max_chunk_size)
        if self.config.min_chunk_size:
            chunks = merge_small_chunks(chunks, self.config.min_chunk_size, self.config.max_chunk_size)
        return chunks

    async def _run_chunked(
        self,
        text: str,
        content_type: ContentType,
        on_event: Optional[EventCallback],
    ) -> SummaryResult:
        chunks = self.split(text)
        warnings: list[str] = []

        to_process = chunks[: self.config.max_chunks_total]
        dropped = len(chunks) - len(to_process)
        if dropped:
            message = (
                f"Content exceeds processing limit: summarizing the first {len(to_process)} "
                f"of {len(chunks)} chunks ({dropped} dropped)"
            )
            warnings.append(message)
            audit_log("chunks_dropped", total_chunks=len(chunks), dropped=dropped)
            logger.warning(message)
            await self._emit(on_event, SummarizeEvent.warning(message))

        await self._emit(
            on_event,
            SummarizeEvent.info(f"Split {len(text)} characters into {len(chunks)} chunks"),
        )

        summaries, errors = await self._process_chunks(to_process, content_type, on_event)

        if not any(s is not None for s in summaries):
            raise AllChunksFailedError([(index, error) for index, error in sorted(errors.items())])

        failed = sorted(errors)
        if failed:
            message = f"{len(failed)} of {len(to_process)} chunks failed and were replaced with placeholders"
            warnings.append(message)
            await self._emit(on_event, SummarizeEvent.warning(message))

        result = await self._aggregate(summaries, errors, content_type, on_event, warnings)
        result.chunk_count = len(chunks)
        result.processed_chunks = len(to_process)
        result.failed_chunks = failed
        result.dropped_chunks = dropped
        return result

    async def _process_chunks(
        self,
        chunks: list[Chunk],
        content_type: ContentType,
        on_event: Optional[EventCallback],
    ) -> tuple[list[Optional[Summary]], dict[int, BaseException]]:
        """Submit every chunk to the pool and collect outcomes by position."""
        total = len(chunks)
        futures = [
            self.pool.submit(
                partial(self._summarize_text, chunk.text, content_type, chunk.index),
                priority=total - position,
                max_retries=self.config.chunk_task_retries,
            )
            for position, chunk in enumerate(chunks)
        ]

        async def settle(position: int) -> tuple[int, Optional[Summary], Optional[BaseException]]:
            try:
                return position, await futures[position], None
            except Exception as e:
                return position, None, e

        summaries: list[Optional[Summary]] = [None] * total
        errors: dict[int, BaseException] = {}
        completed = 0
        for next_done in asyncio.as_completed([settle(p) for p in range(total)]):
            position, summary, error = await next_done
            completed += 1
            chunk = chunks[position]
            if error is not None:
                errors[position] = error
                audit_log(
                    "chunk_failed",
                    chunk_index=chunk.index,
                    error_type=type(error).__name__,
                    error=str(error)[:200],
                )
                logger.warning(f"Chunk {chunk.index + 1}/{total} failed: {error}")
            else:
                summaries[position] = summary
                await self._emit(on_event, SummarizeEvent.chunk(chunk.index, summary.text))
            await self._emit(on_event, SummarizeEvent.progress(completed, total, chunk_index=chunk.index))

        return summaries, errors

    async def _aggregate(
        self,
        summaries: list[Optional[Summary]],
        errors: dict[int, BaseException],
        content_type: ContentType,
        on_event: Optional[EventCallback],
        warnings: list[str],
    ) -> SummaryResult:
        valid = [s for s in summaries if s is not None]
        latest_rate_limit = next(
            (s.rate_limit for s in reversed(valid) if not s.rate_limit.is_empty),
            RateLimitInfo(),
        )

        if len(summaries) == 1:
            only = valid[0]
            return SummaryResult(
                summary=only.text,
                model=only.model,
                aggregation=AggregationStrategy.SINGLE,
                content_type=content_type,
                rate_limit=only.rate_limit,
                warnings=warnings,
            )

        if len(valid) <= self.config.small_chunk_count_threshold:
            texts = [
                s.text if s is not None else failed_chunk_placeholder(position + 1, errors[position])
                for position, s in enumerate(summaries)
            ]
            return SummaryResult(
                summary=concatenate_parts(texts),
                model=valid[0].model,
                aggregation=AggregationStrategy.CONCATENATED,
                content_type=content_type,
                rate_limit=latest_rate_limit,
                warnings=warnings,
            )

        await self._emit(
            on_event,
            SummarizeEvent.progress(len(summaries), len(summaries), stage="finalizing"),
        )
        await self._emit(on_event, SummarizeEvent.info(f"Creating meta-summary from {len(valid)} chunk summaries"))
        texts = [s.text for s in valid]
        try:
            meta = await self._meta_summary(texts, content_type)
        except LLMError as e:
            if not self.config.meta_summary_fallback:
                raise MetaSummaryError(f"Meta-summary failed: {e}", cause=e) from e
            message = f"Meta-summary failed ({e}); merged chunk summaries structurally instead"
            warnings.append(message)
            logger.warning(message)
            await self._emit(on_event, SummarizeEvent.warning(message))
            return SummaryResult(
                summary=merge_summaries(texts),
                model=valid[0].model,
                aggregation=AggregationStrategy.MERGED,
                content_type=content_type,
                rate_limit=latest_rate_limit,
                warnings=warnings,
            )

        return SummaryResult(
            summary=meta.text,
            model=meta.model,
            aggregation=AggregationStrategy.META_SUMMARY,
            content_type=content_type,
            rate_limit=meta.rate_limit if not meta.rate_limit.is_empty else latest_rate_limit,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    def _chunk_model(self, text: str) -> str:
        if self.config.adaptive_model_selection:
            return select_model(len(text), self.config.model)
        return self.config.model

    async def _summarize_text(self, text: str, content_type: ContentType, chunk_index: Optional[int]) -> Summary:
        request = CompletionRequest(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_summary_prompt(text, content_type),
            model=self._chunk_model(text),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        return await self.invoker.invoke(request, chunk_index=chunk_index)

    async def _meta_summary(self, summaries: list[str], content_type: ContentType) -> Summary:
        request = CompletionRequest(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_meta_summary_prompt(summaries, content_type),
            model=self.config.meta_model,
            max_tokens=self.config.meta_max_tokens,
            temperature=self.config.meta_temperature,
        )
        return await self.invoker.invoke(request)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @staticmethod
    async def _emit(on_event: Optional[EventCallback], event: SummarizeEvent) -> None:
        if on_event is None:
            return
        outcome = on_event(event)
        if inspect.isawaitable(outcome):
            await outcome

    @staticmethod
    def _error_event(error: BaseException) -> SummarizeEvent:
        cause = error
        if isinstance(error, AllChunksFailedError) and error.last_error is not None:
            cause = error.last_error
        if isinstance(cause, RateLimitError):
            retry_after = cause.retry_after if cause.retry_after is not None else 60
            return SummarizeEvent.error(
                "Rate limit exceeded. Please try again later.",
                retry_after=retry_after,
            )
        if isinstance(cause, OverloadedError):
            return SummarizeEvent.error(
                "The AI service is currently overloaded. Please try again later.",
                is_overloaded=True,
            )
        if isinstance(error, EmptyContentError):
            return SummarizeEvent.error(str(error))
        return SummarizeEvent.error(f"Summarization failed: {error}")
