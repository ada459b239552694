"""Audit logging for summarization runs.

Provides structured audit events for the points where the pipeline makes a
decision a caller may later want to reconstruct: throttling, retries,
timeouts, pool resizes and degraded results. The correlation id of the
current run is filled in automatically from the request context.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from chunkwise.core.context import get_correlation_id

logger = logging.getLogger(__name__)


class AuditEventType(Enum):
    """Types of audit events."""

    RATE_LIMIT_WAIT = "rate_limit_wait"
    RETRY_ATTEMPT = "retry_attempt"
    TASK_TIMEOUT = "task_timeout"
    TASK_RETRY = "task_retry"
    POOL_RESIZE = "pool_resize"
    CHUNK_FAILED = "chunk_failed"
    CHUNKS_DROPPED = "chunks_dropped"
    TOOL_INVOCATION = "tool_invocation"


@dataclass
class AuditEvent:
    """Structured audit event."""

    event_type: AuditEventType
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Auto-populate correlation_id from context if not set."""
        if self.correlation_id is None:
            self.correlation_id = get_correlation_id() or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "details": self.details,
        }
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        return result


class AuditLogger:
    """
    Structured audit logging for pipeline events.

    Audit logs are written to a separate logger so they can be filtered
    or routed independently of the diagnostic logs.
    """

    def __init__(self):
        self._logger = logging.getLogger(f"{__name__}.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._logger.info(f"AUDIT: {event.event_type.value}", extra={"audit": event.to_dict()})

    def tool_invocation(
        self,
        tool_name: str,
        success: bool = True,
        duration_ms: Optional[float] = None,
        correlation_id: Optional[str] = None,
        **details: Any,
    ) -> None:
        """Log tool invocation."""
        self.log(
            AuditEvent(
                event_type=AuditEventType.TOOL_INVOCATION,
                correlation_id=correlation_id,
                details={
                    "tool": tool_name,
                    "success": success,
                    "duration_ms": duration_ms,
                    **details,
                },
            )
        )


# Global audit logger
_audit = AuditLogger()


def audit_log(event_type: str, **details: Any) -> None:
    """
    Convenience function for audit logging.

    Args:
        event_type: Type of event (rate_limit_wait, retry_attempt, task_timeout,
                    task_retry, pool_resize, chunk_failed, chunks_dropped)
        **details: Additional details to include in the audit log
    """
    try:
        event_enum = AuditEventType(event_type)
    except ValueError:
        event_enum = AuditEventType.TOOL_INVOCATION
        details["original_event_type"] = event_type

    _audit.log(AuditEvent(event_type=event_enum, details=details))
