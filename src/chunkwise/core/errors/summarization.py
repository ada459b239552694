"""Summarization error classes."""

from __future__ import annotations

from typing import Any


class SummarizationError(Exception):
    """Base exception for summarization errors."""

    pass


class EmptyContentError(SummarizationError, ValueError):
    """Raised when there is no text to summarize."""

    def __init__(self, message: str = "No text provided for summarization"):
        super().__init__(message)


class AllChunksFailedError(SummarizationError):
    """Raised when every chunk of a chunked run failed.

    Attributes:
        errors: ``(chunk_index, exception)`` pairs in chunk order
    """

    def __init__(self, errors: list[tuple[int, BaseException]]):
        self.errors = errors
        super().__init__(f"All chunks failed processing ({len(errors)} chunks)")

    @property
    def last_error(self) -> BaseException | None:
        return self.errors[-1][1] if self.errors else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "failure": "all_chunks_failed",
            "chunks": [
                {"index": index, "error": str(error), "type": type(error).__name__}
                for index, error in self.errors
            ],
        }


class MetaSummaryError(SummarizationError):
    """Raised when the meta-summary call fails and no fallback is allowed."""

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
