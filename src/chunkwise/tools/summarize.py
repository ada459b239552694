"""Summarization tools for chunkwise.

Exposes the summarization pipeline over MCP:

- ``summarize-text``: summarize code or documentation, reporting progress
  through the MCP context while chunks complete.
- ``chunk-text``: show how a text would be split, without calling a model.

The orchestrator is created on first use so the server can start (and
``chunk-text`` keeps working) without an API key configured.
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Awaitable, Callable, Optional

from mcp.server.fastmcp import Context, FastMCP

from chunkwise.config import SummarizerConfig
from chunkwise.core.chunking import chunk_text, merge_small_chunks
from chunkwise.core.errors import error_to_response
from chunkwise.core.naming import canonical_tool
from chunkwise.core.responses import ErrorCode, ErrorType, error_response, success_response
from chunkwise.core.summarization import (
    EventType,
    SummarizationOrchestrator,
    SummarizeEvent,
    SummaryMode,
)

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[SummarizerConfig], SummarizationOrchestrator]
EventSink = Callable[[SummarizeEvent], Awaitable[None]]


class _OrchestratorHolder:
    """Lazily builds one orchestrator and shares it across tool calls."""

    def __init__(self, config: SummarizerConfig, factory: OrchestratorFactory) -> None:
        self._config = config
        self._factory = factory
        self._orchestrator: Optional[SummarizationOrchestrator] = None
        self._lock = asyncio.Lock()

    async def get(self) -> SummarizationOrchestrator:
        async with self._lock:
            if self._orchestrator is None:
                orchestrator = self._factory(self._config)
                orchestrator.pool.start()
                self._orchestrator = orchestrator
            return self._orchestrator

    async def aclose(self) -> None:
        async with self._lock:
            if self._orchestrator is not None:
                await self._orchestrator.aclose()
                self._orchestrator = None


def _failure(exc: Exception) -> dict:
    response = error_to_response(exc)
    if response is not None:
        return response
    logger.exception("Unexpected error during summarization")
    return asdict(
        error_response(
            f"Summarization failed: {exc}",
            error_code=ErrorCode.INTERNAL_ERROR,
            error_type=ErrorType.INTERNAL,
        )
    )


async def summarize_action(
    orchestrator: SummarizationOrchestrator,
    text: str,
    mode: str = "auto",
    on_event: Optional[EventSink] = None,
) -> dict:
    """Run one summarization and wrap the outcome in the response envelope."""
    try:
        summary_mode = SummaryMode(mode.lower())
    except ValueError:
        return asdict(
            error_response(
                f"Invalid mode '{mode}'",
                error_code=ErrorCode.VALIDATION_ERROR,
                error_type=ErrorType.VALIDATION,
                remediation=f"Use one of: {', '.join(m.value for m in SummaryMode)}",
            )
        )

    try:
        result = await orchestrator.summarize(text, summary_mode, on_event=on_event)
    except Exception as e:
        return _failure(e)

    data = result.to_dict()
    rate_limit = data.pop("rate_limit")
    warnings = data.pop("warnings")
    return asdict(
        success_response(
            data,
            warnings=warnings,
            rate_limit=rate_limit,
            telemetry={"duration_ms": result.elapsed_ms},
        )
    )


def chunk_action(text: str, max_chunk_size: int, min_chunk_size: int = 0) -> dict:
    """Split ``text`` and describe the chunks."""
    if max_chunk_size <= 0:
        return asdict(
            error_response(
                "max_chunk_size must be positive",
                error_code=ErrorCode.VALIDATION_ERROR,
                error_type=ErrorType.VALIDATION,
            )
        )
    chunks = chunk_text(text, max_chunk_size)
    if min_chunk_size > 0:
        chunks = merge_small_chunks(chunks, min_chunk_size, max_chunk_size)
    return asdict(
        success_response(
            chunk_count=len(chunks),
            total_length=len(text),
            chunks=[chunk.to_dict() for chunk in chunks],
        )
    )


def _context_sink(ctx: Optional[Context]) -> Optional[EventSink]:
    """Forward pipeline events to the MCP client as progress and log messages."""
    if ctx is None:
        return None

    async def forward(event: SummarizeEvent) -> None:
        if event.event == EventType.PROGRESS and event.percent is not None:
            await ctx.report_progress(event.percent, 100)
        elif event.event == EventType.WARNING and event.message:
            await ctx.warning(event.message)
        elif event.event in (EventType.PROCESSING, EventType.INFO) and event.message:
            await ctx.info(event.message)

    return forward


def register_summarize_tools(
    mcp: FastMCP,
    config: SummarizerConfig,
    orchestrator_factory: Optional[OrchestratorFactory] = None,
) -> _OrchestratorHolder:
    """Register summarization tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        config: Summarizer configuration
        orchestrator_factory: Builds the orchestrator on first use
            (defaults to ``SummarizationOrchestrator.from_config``)

    Returns:
        The holder owning the shared orchestrator, so callers can close it.
    """
    holder = _OrchestratorHolder(config, orchestrator_factory or SummarizationOrchestrator.from_config)

    @canonical_tool(
        mcp,
        canonical_name="summarize-text",
    )
    async def summarize_text(text: str, ctx: Context, mode: str = "auto") -> dict:
        """
        Summarize a piece of code or documentation.

        Large inputs are split at natural boundaries (headers, paragraphs,
        lines, sentences) without breaking code blocks, summarized in
        parallel, and combined into one structured summary.

        WHEN TO USE:
        - Condensing source files, READMEs or design docs
        - Getting a structured overview of long text

        Args:
            text: The text to summarize
            mode: "auto" (detect), "code" or "documentation"

        Returns:
            JSON object with:
            - summary: Final summary text
            - aggregation: direct, single, concatenated, meta_summary or merged
            - chunk_count / failed_chunks / dropped_chunks: Chunking outcome
            - meta.warnings: Non-fatal issues (dropped or failed chunks)
            - retry_after / is_overloaded on rate-limit and overload failures
        """
        try:
            orchestrator = await holder.get()
        except Exception as e:
            return _failure(e)
        return await summarize_action(orchestrator, text, mode, on_event=_context_sink(ctx))

    @canonical_tool(
        mcp,
        canonical_name="chunk-text",
    )
    async def chunk_text_tool(text: str, max_chunk_size: Optional[int] = None) -> dict:
        """
        Preview how text would be chunked for summarization.

        Args:
            text: The text to split
            max_chunk_size: Maximum characters per chunk (default: configured value)

        Returns:
            JSON object with chunk_count, total_length and the chunks
            (index, length, text).
        """
        return chunk_action(
            text,
            max_chunk_size if max_chunk_size is not None else config.max_chunk_size,
            config.min_chunk_size,
        )

    logger.debug("Registered summarization tools")
    return holder


__all__ = ["register_summarize_tools", "summarize_action", "chunk_action"]
