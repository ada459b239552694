"""Summarization pipeline: prompts, content detection, aggregation, orchestration."""

from chunkwise.core.summarization.content import (
    detect_content_type,
    resolve_content_type,
    select_model,
)
from chunkwise.core.summarization.events import EventType, SummarizeEvent
from chunkwise.core.summarization.invoker import RetryingInvoker
from chunkwise.core.summarization.merge import (
    concatenate_parts,
    extract_sections,
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
from chunkwise.core.summarization.orchestrator import SummarizationOrchestrator

__all__ = [
    "AggregationStrategy",
    "ContentType",
    "EventType",
    "RetryingInvoker",
    "SummarizationOrchestrator",
    "SummarizeEvent",
    "Summary",
    "SummaryMode",
    "SummaryResult",
    "concatenate_parts",
    "detect_content_type",
    "extract_sections",
    "failed_chunk_placeholder",
    "merge_summaries",
    "resolve_content_type",
    "select_model",
]
