"""Boundary discovery for the chunker.

The first pass over the input collects every fenced code block and every
position at which a cut would be acceptable, grouped by quality. The
second pass (``chunker.chunk_text``) only ever consults these precomputed
lists, so the split decision for a window is a handful of bisections.

Candidate positions are *cut* positions: the chunk before the cut ends at
``position`` (exclusive) and the next chunk starts there. Sentence and line
terminators therefore stay with the chunk they end.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Optional

from chunkwise.core.chunking.models import BoundaryCandidate, BoundaryQuality, ProtectedSpan

logger = logging.getLogger(__name__)

FENCE = "```"

# Lookback windows (chars before the tentative end) per boundary quality.
HEADER_LOOKBACK = 500
PARAGRAPH_LOOKBACK = 500
LINE_LOOKBACK = 300
SENTENCE_LOOKBACK = 200

SENTENCE_TERMINATORS = (". ", "! ", "? ", ".\n", "!\n", "?\n")


def find_protected_spans(text: str) -> list[ProtectedSpan]:
    """Find fenced code blocks by pairing ``` delimiters left to right.

    A trailing unmatched fence protects nothing: treating the rest of the
    document as code would disable boundary detection for all of it.
    """
    spans: list[ProtectedSpan] = []
    pos = text.find(FENCE)
    while pos != -1:
        close = text.find(FENCE, pos + len(FENCE))
        if close == -1:
            logger.debug(f"Unclosed code fence at offset {pos}; not protected")
            break
        end = close + len(FENCE)
        spans.append(ProtectedSpan(pos, end))
        pos = text.find(FENCE, end)
    return spans


def _is_header_line(text: str, start: int) -> bool:
    """A line of 1-6 '#' followed by whitespace and some title text."""
    i = start
    n = len(text)
    while i < n and i - start < 7 and text[i] == "#":
        i += 1
    hashes = i - start
    if hashes < 1 or hashes > 6:
        return False
    if i >= n or text[i] not in " \t":
        return False
    while i < n and text[i] in " \t":
        i += 1
    return i < n and text[i] != "\n"


def _find_all(text: str, needle: str, offset: int) -> list[int]:
    """Positions of every (possibly overlapping) occurrence, shifted by offset."""
    found = []
    pos = text.find(needle)
    while pos != -1:
        found.append(pos + offset)
        pos = text.find(needle, pos + 1)
    return found


@dataclass
class BoundaryIndex:
    """Sorted candidate positions and protected spans for one input."""

    spans: list[ProtectedSpan]
    headers: list[int]
    paragraphs: list[int]
    lines: list[int]
    sentences: list[int]

    @classmethod
    def build(cls, text: str) -> "BoundaryIndex":
        spans = find_protected_spans(text)
        span_starts = [span.start for span in spans]

        def outside_spans(position: int) -> bool:
            i = bisect_right(span_starts, position) - 1
            return i < 0 or not spans[i].strictly_contains(position)

        line_starts = [0] + [p + 1 for p in _find_all(text, "\n", 0)]
        headers = [p for p in line_starts if p < len(text) and _is_header_line(text, p)]

        # A cut lands right after the separator/terminator.
        paragraphs = _find_all(text, "\n\n", 2)
        lines = _find_all(text, "\n", 1)
        sentences = sorted({p for t in SENTENCE_TERMINATORS for p in _find_all(text, t, len(t))})

        return cls(
            spans=spans,
            headers=[p for p in headers if outside_spans(p)],
            paragraphs=[p for p in paragraphs if outside_spans(p)],
            lines=[p for p in lines if outside_spans(p)],
            sentences=[p for p in sentences if outside_spans(p)],
        )

    def span_containing(self, position: int) -> Optional[ProtectedSpan]:
        """The protected span that ``position`` falls strictly inside, if any."""
        i = bisect_right([span.start for span in self.spans], position) - 1
        if i >= 0 and self.spans[i].strictly_contains(position):
            return self.spans[i]
        return None

    def best_boundary(self, current: int, end: int) -> Optional[BoundaryCandidate]:
        """Highest-quality cut in ``(current, end]`` within its lookback window.

        Qualities are tried in strict priority order; within a quality the
        candidate nearest to ``end`` wins. Returns None when nothing
        qualifies, meaning the caller should hard-cut at ``end``.
        """
        tiers = (
            (self.headers, HEADER_LOOKBACK, BoundaryQuality.HEADER),
            (self.paragraphs, PARAGRAPH_LOOKBACK, BoundaryQuality.PARAGRAPH),
            (self.lines, LINE_LOOKBACK, BoundaryQuality.LINE),
            (self.sentences, SENTENCE_LOOKBACK, BoundaryQuality.SENTENCE),
        )
        for positions, lookback, quality in tiers:
            i = bisect_right(positions, end) - 1
            if i < 0:
                continue
            candidate = positions[i]
            if candidate > current and candidate > end - lookback:
                return BoundaryCandidate(candidate, quality)
        return None
