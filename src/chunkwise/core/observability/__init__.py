"""
Observability utilities for chunkwise.

Provides audit logging for pipeline decisions and the @mcp_tool decorator
used by the FastMCP tool handlers.
"""

from chunkwise.core.observability.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    audit_log,
)
from chunkwise.core.observability.decorators import mcp_tool

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "audit_log",
    "mcp_tool",
]
