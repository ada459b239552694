"""Constants for summarization."""

from __future__ import annotations

# Model identifiers
SMALL_CONTENT_MODEL = "claude-3-5-haiku-latest"
MEDIUM_CONTENT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_MODEL = "claude-3-5-sonnet-20240620"

# Adaptive model selection bounds (chars)
SMALL_CONTENT_MODEL_LIMIT = 5000
MEDIUM_CONTENT_MODEL_LIMIT = 12000

# Content detection
CODE_INDICATOR_THRESHOLD = 5
SPECIAL_CHAR_DENSITY_THRESHOLD = 0.05

# Aggregation
SECTION_SEPARATOR = "\n\n---\n\n"
KEY_TAKEAWAYS_LIMIT = 5
FAILED_CHUNK_PLACEHOLDER = "_[Part {number} could not be summarized: {error}]_"
