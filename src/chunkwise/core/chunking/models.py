"""Data types produced and consumed by the chunker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class BoundaryQuality(IntEnum):
    """How natural a split position is. Higher values are preferred."""

    SENTENCE = 1
    LINE = 2
    PARAGRAPH = 3
    HEADER = 4


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of the input sized for one model call.

    Attributes:
        index: Position of the chunk in the input (reassembly order)
        text: The chunk's text, boundary characters included
        length: ``len(text)``
    """

    index: int
    text: str
    length: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "length", len(self.text))

    def to_dict(self) -> dict[str, object]:
        return {"index": self.index, "length": self.length, "text": self.text}


@dataclass(frozen=True)
class ProtectedSpan:
    """A ``[start, end)`` range (a fenced code block) that must not be cut."""

    start: int
    end: int

    def strictly_contains(self, position: int) -> bool:
        """True when cutting at ``position`` would split the span."""
        return self.start < position < self.end


@dataclass(frozen=True)
class BoundaryCandidate:
    """A position where the text may be split, with its quality."""

    position: int
    quality: BoundaryQuality
