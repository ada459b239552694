"""Tests for content detection, prompts and structural aggregation."""

import pytest

from chunkwise.core.summarization import (
    ContentType,
    SummaryMode,
    concatenate_parts,
    detect_content_type,
    extract_sections,
    failed_chunk_placeholder,
    merge_summaries,
    resolve_content_type,
    select_model,
)
from chunkwise.core.summarization.constants import (
    DEFAULT_MODEL,
    MEDIUM_CONTENT_MODEL,
    SECTION_SEPARATOR,
    SMALL_CONTENT_MODEL,
)
from chunkwise.core.summarization.prompts import (
    SUMMARY_PROMPT,
    build_meta_summary_prompt,
    build_summary_prompt,
    number_sections,
)

JS_SNIPPET = """
import { useState } from 'react';
const counter = 0;
function increment(value) {
  if (value > 10) { return value; }
  return value + 1;
}
class Store { }
const items = ['a', 'b'];
const handler = () => increment(1);
"""

PROSE = (
    "This guide explains how to configure the service. "
    "Start by reading the overview, then follow the installation steps. "
    "Each section describes one workflow in plain language."
)


class TestContentDetection:
    """Tests for detect_content_type and friends."""

    def test_detects_code(self):
        assert detect_content_type(JS_SNIPPET) == ContentType.CODE

    def test_detects_documentation(self):
        assert detect_content_type(PROSE) == ContentType.DOCUMENTATION

    def test_dense_symbols_count_as_code(self):
        """High special-character density alone marks text as code."""
        assert detect_content_type("a = b + c; d = (e * f) / g;") == ContentType.CODE

    def test_explicit_mode_overrides_detection(self):
        assert resolve_content_type(JS_SNIPPET, SummaryMode.DOCUMENTATION) == ContentType.DOCUMENTATION
        assert resolve_content_type(PROSE, SummaryMode.CODE) == ContentType.CODE
        assert resolve_content_type(PROSE, SummaryMode.AUTO) == ContentType.DOCUMENTATION

    @pytest.mark.parametrize(
        "length,expected",
        [
            (0, SMALL_CONTENT_MODEL),
            (4999, SMALL_CONTENT_MODEL),
            (5000, MEDIUM_CONTENT_MODEL),
            (11999, MEDIUM_CONTENT_MODEL),
            (12000, DEFAULT_MODEL),
        ],
    )
    def test_select_model(self, length, expected):
        assert select_model(length, DEFAULT_MODEL) == expected


class TestPrompts:
    """Tests for prompt builders."""

    def test_summary_prompt_includes_text_and_guidance(self):
        prompt = build_summary_prompt("def f(): pass", ContentType.CODE)
        assert prompt.startswith(SUMMARY_PROMPT)
        assert "appears to be code" in prompt
        assert prompt.endswith("def f(): pass")

    def test_number_sections(self):
        numbered = number_sections(["first", "second"])
        assert numbered == "## Section 1 of 2\n\nfirst" + SECTION_SEPARATOR + "## Section 2 of 2\n\nsecond"

    def test_meta_prompt_uses_content_type(self):
        prompt = build_meta_summary_prompt(["a", "b"], ContentType.DOCUMENTATION)
        assert "primarily about documentation" in prompt
        assert "## Section 2 of 2" in prompt


SUMMARY_A = """## Key Takeaways
- Uses a worker pool
- Retries transient errors

## Implementation Path
1. Chunk the text
2. Summarize chunks

## Problem Areas
- Large code blocks
"""

SUMMARY_B = """## Key Takeaways
- Uses a worker pool
- Rate limits requests
- Detects content type
- Streams progress
- Merges sections
- Extra takeaway

## Implementation Path
1. Summarize chunks
2. Combine summaries
"""


class TestMerge:
    """Tests for structural merging."""

    def test_failed_chunk_placeholder(self):
        assert failed_chunk_placeholder(2, RuntimeError("boom")) == "_[Part 2 could not be summarized: boom]_"

    def test_placeholder_falls_back_to_error_type(self):
        assert "TimeoutError" in failed_chunk_placeholder(1, TimeoutError())

    def test_concatenate_parts(self):
        assert concatenate_parts(["first ", "second"]) == "## Part 1\n\nfirst\n\n## Part 2\n\nsecond"

    def test_extract_sections(self):
        sections = extract_sections(SUMMARY_A)
        assert set(sections) == {"Key Takeaways", "Implementation Path", "Problem Areas"}
        assert sections["Problem Areas"] == "- Large code blocks"

    def test_extract_sections_ignores_unknown_headings(self):
        sections = extract_sections("## Random\n- skipped\n## key takeaways\n- kept")
        assert sections == {"Key Takeaways": "- kept"}

    def test_merge_deduplicates_and_limits_takeaways(self):
        merged = merge_summaries([SUMMARY_A, SUMMARY_B])
        takeaways = extract_sections(merged)["Key Takeaways"].splitlines()
        assert takeaways == [
            "- Uses a worker pool",
            "- Retries transient errors",
            "- Rate limits requests",
            "- Detects content type",
            "- Streams progress",
        ]

    def test_merge_renumbers_steps(self):
        merged = merge_summaries([SUMMARY_A, SUMMARY_B])
        steps = extract_sections(merged)["Implementation Path"].splitlines()
        assert steps == ["1. Chunk the text", "2. Summarize chunks", "3. Combine summaries"]

    def test_merge_emits_every_section_in_order(self):
        merged = merge_summaries([SUMMARY_A])
        headings = [line for line in merged.splitlines() if line.startswith("## ")]
        assert headings == [
            "## Key Takeaways",
            "## Core Concepts",
            "## Implementation Path",
            "## Time-Saving Patterns",
            "## Risk Mitigation",
            "## Problem Areas",
            "## Business Impact",
        ]
