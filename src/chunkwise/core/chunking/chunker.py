"""Boundary-aware text chunker.

Splits oversized input into pieces of at most ``max_size`` characters,
preferring to cut at headers, then paragraph breaks, then line breaks,
then sentence ends, and never inside a fenced code block.
"""

from __future__ import annotations

import logging

from chunkwise.core.chunking.boundaries import BoundaryIndex
from chunkwise.core.chunking.models import Chunk

logger = logging.getLogger(__name__)


def chunk_text(text: str, max_size: int) -> list[Chunk]:
    """Split ``text`` into ordered chunks.

    Concatenating the returned chunk texts reproduces ``text`` exactly.
    Chunks exceed ``max_size`` only when a code block or a run of text
    without any boundary is longer than ``max_size``.

    Args:
        text: Input text. Empty input yields a single empty chunk.
        max_size: Maximum chunk length in characters.

    Returns:
        Chunks in input order, indexed from 0.

    Raises:
        ValueError: If ``max_size`` is not positive.

    Examples:
        >>> [c.text for c in chunk_text("short", 100)]
        ['short']
    """
    if max_size <= 0:
        raise ValueError(f"max_size must be positive, got {max_size}")

    if len(text) <= max_size:
        return [Chunk(0, text)]

    index = BoundaryIndex.build(text)
    total = len(text)
    chunks: list[Chunk] = []
    current = 0

    while current < total:
        end = min(current + max_size, total)

        span = index.span_containing(end)
        if span is not None:
            end = span.end

        if end < total:
            boundary = index.best_boundary(current, end)
            if boundary is not None:
                end = boundary.position

        chunks.append(Chunk(len(chunks), text[current:end]))
        current = end

    logger.debug(
        f"Split {total} chars into {len(chunks)} chunks",
        extra={"max_size": max_size, "protected_spans": len(index.spans)},
    )
    return chunks


def merge_small_chunks(chunks: list[Chunk], min_size: int, max_size: int) -> list[Chunk]:
    """Fold chunks shorter than ``min_size`` into their predecessor.

    A merge only happens when the combined length stays within
    ``max_size``. Texts are joined without a separator so reconstruction
    still holds; the result is reindexed from 0.
    """
    if min_size <= 0 or len(chunks) < 2:
        return list(chunks)

    texts: list[str] = []
    for chunk in chunks:
        if texts and chunk.length < min_size and len(texts[-1]) + chunk.length <= max_size:
            texts[-1] += chunk.text
        else:
            texts.append(chunk.text)

    return [Chunk(i, t) for i, t in enumerate(texts)]
