"""Structural aggregation of chunk summaries (no model calls)."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from chunkwise.core.summarization.constants import (
    FAILED_CHUNK_PLACEHOLDER,
    KEY_TAKEAWAYS_LIMIT,
)
from chunkwise.core.summarization.prompts import SECTION_TITLES

_NUMBERED_STEP = re.compile(r"^\d+\.\s*(.+)$")
_HEADING = re.compile(r"^##\s+(.+?)\s*$")


def failed_chunk_placeholder(number: int, error: BaseException) -> str:
    """Marker text standing in for a chunk that could not be summarized."""
    return FAILED_CHUNK_PLACEHOLDER.format(number=number, error=str(error) or type(error).__name__)


def concatenate_parts(summaries: Sequence[str]) -> str:
    """Join summaries in order under ``## Part N`` headers."""
    return "\n\n".join(f"## Part {i}\n\n{text.strip()}" for i, text in enumerate(summaries, start=1))


def extract_sections(summary: str) -> dict[str, str]:
    """Body text of each known section heading in ``summary`` (case-insensitive)."""
    wanted = {title.lower(): title for title in SECTION_TITLES}
    sections: dict[str, list[str]] = {}
    current: Optional[str] = None
    for line in summary.splitlines():
        heading = _HEADING.match(line.strip())
        if heading:
            current = wanted.get(heading.group(1).lower())
            if current is not None:
                sections.setdefault(current, [])
            continue
        if current is not None:
            sections[current].append(line)
    return {title: "\n".join(lines).strip() for title, lines in sections.items()}


def _bullets(bodies: Sequence[str]) -> list[str]:
    seen: dict[str, None] = {}
    for body in bodies:
        for line in body.splitlines():
            stripped = line.strip()
            if stripped.startswith("-"):
                seen.setdefault(stripped, None)
    return list(seen)


def _steps(bodies: Sequence[str]) -> list[str]:
    seen: dict[str, None] = {}
    for body in bodies:
        for line in body.splitlines():
            match = _NUMBERED_STEP.match(line.strip())
            if match:
                seen.setdefault(match.group(1).strip(), None)
    return list(seen)


def merge_summaries(summaries: Sequence[str]) -> str:
    """Merge seven-section summaries into one, section by section.

    Bullet lines are deduplicated keeping first occurrence; Key Takeaways
    keeps at most five; Implementation Path steps are deduplicated and
    renumbered from 1.
    """
    extracted = [extract_sections(summary) for summary in summaries]
    parts: list[str] = []
    for title in SECTION_TITLES:
        bodies = [sections[title] for sections in extracted if title in sections]
        if title == "Implementation Path":
            lines = [f"{i}. {step}" for i, step in enumerate(_steps(bodies), start=1)]
        else:
            lines = _bullets(bodies)
            if title == "Key Takeaways":
                lines = lines[:KEY_TAKEAWAYS_LIMIT]
        parts.append(f"## {title}\n\n" + "\n".join(lines))
    return "\n\n".join(part.rstrip() for part in parts)
