"""Content type detection and model selection heuristics."""

from __future__ import annotations

import re

from chunkwise.core.summarization.constants import (
    CODE_INDICATOR_THRESHOLD,
    MEDIUM_CONTENT_MODEL,
    MEDIUM_CONTENT_MODEL_LIMIT,
    SMALL_CONTENT_MODEL,
    SMALL_CONTENT_MODEL_LIMIT,
    SPECIAL_CHAR_DENSITY_THRESHOLD,
)
from chunkwise.core.summarization.models import ContentType, SummaryMode

_CODE_INDICATORS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"function\s+\w+\s*\(",  # function definitions
        r"class\s+\w+",  # class definitions
        r"(?:const|let|var)\s+\w+\s*=",  # variable assignments
        r"import\s+[\w\s,{}]*\s+from",  # ES imports
        r"\{\s*[\w\s]*:\s*[\w\s\"']*\}",  # object literals
        r"if\s*\([^)]*\)\s*\{",  # braced if-blocks
        r"<\w+(?:\s+\w+=\"[^\"]*\")*\s*>",  # tags
        r"\[\s*[\w\s,'\"]*\s*\]",  # array literals
        r"=>",  # arrows
        r"return\s+[\w\s.()]*;",  # return statements
    )
)

_SPECIAL_CHARS = re.compile(r"[{}\[\]()<>:;=+\-*/%&|^!~?]")


def count_code_indicators(text: str) -> int:
    """Total matches of all code-indicator patterns."""
    return sum(len(pattern.findall(text)) for pattern in _CODE_INDICATORS)


def special_char_density(text: str) -> float:
    if not text:
        return 0.0
    return len(_SPECIAL_CHARS.findall(text)) / len(text)


def detect_content_type(text: str) -> ContentType:
    """Guess whether ``text`` is mostly code or mostly documentation.

    Examples:
        >>> detect_content_type("The quick brown fox.")
        <ContentType.DOCUMENTATION: 'documentation'>
    """
    if count_code_indicators(text) > CODE_INDICATOR_THRESHOLD:
        return ContentType.CODE
    if special_char_density(text) > SPECIAL_CHAR_DENSITY_THRESHOLD:
        return ContentType.CODE
    return ContentType.DOCUMENTATION


def resolve_content_type(text: str, mode: SummaryMode) -> ContentType:
    """The content type a run should be tuned for under ``mode``."""
    if mode == SummaryMode.CODE:
        return ContentType.CODE
    if mode == SummaryMode.DOCUMENTATION:
        return ContentType.DOCUMENTATION
    return detect_content_type(text)


def select_model(text_length: int, default_model: str) -> str:
    """Pick a faster model for shorter inputs.

    Below 5000 chars the small model is used, below 12000 the medium one,
    otherwise ``default_model``.
    """
    if text_length < SMALL_CONTENT_MODEL_LIMIT:
        return SMALL_CONTENT_MODEL
    if text_length < MEDIUM_CONTENT_MODEL_LIMIT:
        return MEDIUM_CONTENT_MODEL
    return default_model
