"""MCP tool decorator with observability.

Provides @mcp_tool, which binds a correlation id for the invocation, logs
it and writes a tool_invocation audit entry with its outcome and latency.
"""

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from chunkwise.core.context import correlation_scope, generate_correlation_id, get_correlation_id
from chunkwise.core.observability.audit import _audit

logger = logging.getLogger(__name__)

T = TypeVar("T")


def mcp_tool(
    tool_name: Optional[str] = None, audit: bool = True
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for async MCP tool handlers.

    Args:
        tool_name: Override tool name (defaults to function name)
        audit: Whether to create audit log entries
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        name = tool_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            corr_id = get_correlation_id() or generate_correlation_id(prefix="tool")
            with correlation_scope(corr_id):
                start = time.perf_counter()
                success = True
                error_msg = None
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    success = False
                    error_msg = str(e)
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start) * 1000
                    logger.debug(
                        f"Tool {name} finished in {duration_ms:.1f}ms",
                        extra={"tool": name, "success": success},
                    )
                    if audit:
                        _audit.tool_invocation(
                            tool_name=name,
                            success=success,
                            duration_ms=round(duration_ms, 2),
                            error=error_msg,
                            correlation_id=corr_id,
                        )

        return wrapper

    return decorator
