"""Prompt templates for chunk summaries and the meta-summary.

Every summary is asked to follow the same seven-section layout so that
chunk summaries can be merged section by section when needed
(see ``merge.merge_summaries``).
"""

from __future__ import annotations

from typing import Sequence

from chunkwise.core.summarization.constants import SECTION_SEPARATOR
from chunkwise.core.summarization.models import ContentType

SECTION_TITLES = (
    "Key Takeaways",
    "Core Concepts",
    "Implementation Path",
    "Time-Saving Patterns",
    "Risk Mitigation",
    "Problem Areas",
    "Business Impact",
)

SYSTEM_PROMPT = """You are an AI Documentation and Code Analysis Agent specializing in extracting business-critical insights from technical content.

Your task is to analyze technical documents or code and create summaries that maximize knowledge transfer and developer productivity.

You MUST follow these output format requirements:
1. Begin with a "## Key Takeaways" section highlighting the 2-3 most important insights for developers
2. Include a "## Core Concepts" section with bullet points for main components/concepts explained in plain language
3. Include a "## Implementation Path" section with specific numbered steps needed to make it work successfully
4. Add a "## Time-Saving Patterns" section that highlights reusable strategies applicable across projects
5. Include a "## Risk Mitigation" section with common errors, debugging tips, architectural anti-patterns, and security considerations
6. Add a "## Problem Areas" section that identifies technical debt, unclear explanations, missing documentation, or problematic implementations
7. End with a "## Business Impact" section that outlines efficiency gains, cost savings, or other business value

Keep language clear and concise. Aim to save developer time through effective knowledge transfer."""

SUMMARY_PROMPT = """Analyze the following technical content and create a summary that maximizes knowledge transfer and developer productivity.

For CODE content:
- Focus on implementation patterns, reusable components, and error-handling approaches that save time
- Flag complex logic blocks that would benefit from additional documentation
- Scrutinize for potential bugs, performance bottlenecks, security issues, or maintainability problems

For DOCS content:
- Focus on workflows, configuration shortcuts, and best practices that prevent common pitfalls
- Identify missing, outdated, or contradictory information
- Flag sections where examples are missing or incomplete

Your goal is to create a summary that would save a developer hours of reading time while preserving all essential information for successful implementation."""

META_SUMMARY_PROMPT = """Synthesize these section summaries into a unified technical summary that maximizes business value and developer productivity.

Guidelines:
1. Consolidate repetitive concepts across sections
2. Highlight workflows that reduce implementation time
3. Identify patterns that can be reused across projects
4. Flag any efficiency bottlenecks or areas for optimization
5. Structure information to minimize cognitive load for new developers
6. Consolidate problem areas to highlight systemic issues or recurring challenges

Below are summaries of different sections of one document. Create a cohesive summary in the required structure."""

_CHUNK_GUIDANCE = {
    ContentType.CODE: (
        "This content appears to be code. Focus on architecture, functions, classes, "
        "and implementation patterns. Include code structure and key algorithms."
    ),
    ContentType.DOCUMENTATION: (
        "This content appears to be documentation. Focus on concepts, workflows, "
        "API details, and usage guidelines."
    ),
}

_META_GUIDANCE = {
    ContentType.CODE: (
        "This summary is primarily about code. Ensure your meta-summary emphasizes "
        "architecture, functions, and implementation patterns. Maintain the structured format."
    ),
    ContentType.DOCUMENTATION: (
        "This summary is primarily about documentation. Ensure your meta-summary emphasizes "
        "concepts, workflows, and usage guidelines. Maintain the structured format."
    ),
}


def build_summary_prompt(text: str, content_type: ContentType) -> str:
    """User prompt for summarizing one chunk (or a whole small input)."""
    return f"{SUMMARY_PROMPT}\n\n{_CHUNK_GUIDANCE[content_type]}\n\nContent:\n\n{text}"


def number_sections(summaries: Sequence[str]) -> str:
    """Join summaries as ``## Section i of n`` blocks separated by rules."""
    total = len(summaries)
    return SECTION_SEPARATOR.join(
        f"## Section {i} of {total}\n\n{summary}" for i, summary in enumerate(summaries, start=1)
    )


def build_meta_summary_prompt(summaries: Sequence[str], content_type: ContentType) -> str:
    """User prompt for the meta-summary over chunk-level summaries."""
    return (
        f"{META_SUMMARY_PROMPT}\n\n{_META_GUIDANCE[content_type]}\n\n"
        f"Here are the individual summaries:\n\n{number_sections(summaries)}"
    )
