"""MCP tool registrations for chunkwise."""

from chunkwise.tools.summarize import chunk_action, register_summarize_tools, summarize_action

__all__ = ["register_summarize_tools", "summarize_action", "chunk_action"]
