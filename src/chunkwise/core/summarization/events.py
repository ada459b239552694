"""Progress events emitted during a summarization run.

The orchestrator reports what it is doing as a sequence of these events;
transports (the MCP tool, the CLI, an SSE endpoint) decide how to show them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Named stream events, in roughly the order a run emits them."""

    PROCESSING = "processing"
    INFO = "info"
    PROGRESS = "progress"
    CHUNK = "chunk"
    WARNING = "warning"
    RESULT = "result"
    ERROR = "error"
    COMPLETE = "complete"


class SummarizeEvent(BaseModel):
    """A single stream event. Unused fields are left as None."""

    event: EventType = Field(..., description="Event name")
    message: Optional[str] = Field(None, description="Human-readable status text")
    stage: Optional[str] = Field(None, description="Pipeline stage for progress events")
    chunk_index: Optional[int] = Field(None, description="Chunk the event refers to")
    total_chunks: Optional[int] = Field(None, description="Chunks in this run")
    percent: Optional[int] = Field(None, ge=0, le=100, description="Completed share of chunks")
    summary: Optional[str] = Field(None, description="Chunk or final summary text")
    retry_after: Optional[float] = Field(None, description="Seconds to wait after a rate-limit error")
    is_overloaded: Optional[bool] = Field(None, description="Set when the upstream was overloaded")
    data: Optional[Dict[str, Any]] = Field(None, description="Structured payload (final result)")

    @classmethod
    def processing(cls, message: str = "Processing started") -> "SummarizeEvent":
        return cls(event=EventType.PROCESSING, message=message)

    @classmethod
    def info(cls, message: str) -> "SummarizeEvent":
        return cls(event=EventType.INFO, message=message)

    @classmethod
    def progress(
        cls,
        completed: int,
        total: int,
        *,
        chunk_index: Optional[int] = None,
        stage: str = "chunks",
    ) -> "SummarizeEvent":
        percent = 100 if total <= 0 else int(round(completed * 100 / total))
        return cls(
            event=EventType.PROGRESS,
            stage=stage,
            chunk_index=chunk_index,
            total_chunks=total,
            percent=percent,
        )

    @classmethod
    def chunk(cls, index: int, summary: str) -> "SummarizeEvent":
        return cls(event=EventType.CHUNK, chunk_index=index, summary=summary)

    @classmethod
    def warning(cls, message: str) -> "SummarizeEvent":
        return cls(event=EventType.WARNING, message=message)

    @classmethod
    def result(cls, summary: str, data: Optional[Dict[str, Any]] = None) -> "SummarizeEvent":
        return cls(event=EventType.RESULT, summary=summary, data=data)

    @classmethod
    def error(
        cls,
        message: str,
        *,
        retry_after: Optional[float] = None,
        is_overloaded: Optional[bool] = None,
    ) -> "SummarizeEvent":
        return cls(event=EventType.ERROR, message=message, retry_after=retry_after, is_overloaded=is_overloaded)

    @classmethod
    def complete(cls) -> "SummarizeEvent":
        return cls(event=EventType.COMPLETE)

    def to_sse(self) -> str:
        """Server-sent-events framing: ``event:`` line, JSON ``data:`` line."""
        payload = self.model_dump_json(exclude_none=True, exclude={"event"})
        return f"event: {self.event.value}\ndata: {payload}\n\n"
