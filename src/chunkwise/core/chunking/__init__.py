"""Boundary-aware chunking of large text inputs."""

from chunkwise.core.chunking.boundaries import BoundaryIndex, find_protected_spans
from chunkwise.core.chunking.chunker import chunk_text, merge_small_chunks
from chunkwise.core.chunking.models import (
    BoundaryCandidate,
    BoundaryQuality,
    Chunk,
    ProtectedSpan,
)

__all__ = [
    "BoundaryCandidate",
    "BoundaryIndex",
    "BoundaryQuality",
    "Chunk",
    "ProtectedSpan",
    "chunk_text",
    "find_protected_spans",
    "merge_small_chunks",
]
