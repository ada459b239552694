"""Data models for summarization.

Key Components:
    - ContentType / SummaryMode: what the input is, and what the caller asked for
    - AggregationStrategy: how the final summary was assembled
    - Summary: one model output (per chunk, direct, or meta-summary)
    - SummaryResult: the outcome of a full ``summarize`` run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from chunkwise.core.providers.rate_limits import RateLimitInfo


class ContentType(str, Enum):
    """Detected (or requested) kind of input text."""

    CODE = "code"
    DOCUMENTATION = "documentation"


class SummaryMode(str, Enum):
    """Caller's choice of prompt emphasis. AUTO defers to content detection."""

    AUTO = "auto"
    CODE = "code"
    DOCUMENTATION = "documentation"


class AggregationStrategy(str, Enum):
    """How the final summary text was produced.

    Values:
        DIRECT: Input was small enough for one call, no chunking
        SINGLE: Chunking produced a single chunk; its summary is returned as-is
        CONCATENATED: Chunk summaries joined under ``## Part N`` headers
        META_SUMMARY: One extra model call synthesized the chunk summaries
        MERGED: Meta-summary call failed; sections merged structurally instead
    """

    DIRECT = "direct"
    SINGLE = "single"
    CONCATENATED = "concatenated"
    META_SUMMARY = "meta_summary"
    MERGED = "merged"


@dataclass(frozen=True)
class Summary:
    """One model output. Not mutated after creation."""

    text: str
    model: str
    elapsed_ms: int
    source_chunk_index: Optional[int] = None
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "text": self.text,
            "model": self.model,
            "elapsed_ms": self.elapsed_ms,
        }
        if self.source_chunk_index is not None:
            result["source_chunk_index"] = self.source_chunk_index
        if not self.rate_limit.is_empty:
            result["rate_limit"] = self.rate_limit.to_dict()
        return result


@dataclass
class SummaryResult:
    """Outcome of a full summarization run.

    Attributes:
        summary: Final summary text
        model: Model that produced the final text
        chunk_count: Chunks produced by the chunker (0 for the direct path)
        processed_chunks: Chunks submitted for summarization
        failed_chunks: Indices of chunks replaced by placeholders
        dropped_chunks: Chunks over the per-run cap that were not processed
        aggregation: How the final text was assembled
        content_type: Content type the prompts were tuned for
        elapsed_ms: Wall time of the run
        rate_limit: Most recent upstream rate-limit state
        warnings: Non-fatal issues (dropped chunks, failed chunks, fallbacks)
    """

    summary: str
    model: str
    aggregation: AggregationStrategy
    content_type: ContentType
    chunk_count: int = 0
    processed_chunks: int = 0
    failed_chunks: list[int] = field(default_factory=list)
    dropped_chunks: int = 0
    elapsed_ms: int = 0
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "model": self.model,
            "aggregation": self.aggregation.value,
            "content_type": self.content_type.value,
            "chunk_count": self.chunk_count,
            "processed_chunks": self.processed_chunks,
            "failed_chunks": list(self.failed_chunks),
            "dropped_chunks": self.dropped_chunks,
            "elapsed_ms": self.elapsed_ms,
            "rate_limit": self.rate_limit.to_dict(),
            "warnings": list(self.warnings),
        }
