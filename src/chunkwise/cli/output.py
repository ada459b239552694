"""JSON output helpers for CLI commands.

Commands print the same response envelope the MCP tools return, so
scripts can treat both surfaces alike. Errors exit with status 1.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, NoReturn, Optional

import click

from chunkwise.core.errors import error_to_response
from chunkwise.core.responses import ErrorCode, ErrorType, error_response, success_response


def _print(payload: Mapping[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def emit_success(data: Mapping[str, Any], *, warnings: Optional[list] = None) -> None:
    """Print a success envelope to stdout."""
    _print(asdict(success_response(data, warnings=warnings)))


def emit_response(response: Mapping[str, Any]) -> None:
    """Print a prebuilt envelope, exiting non-zero when it is an error."""
    _print(response)
    if not response.get("success"):
        sys.exit(1)


def emit_error(
    message: str,
    *,
    code: str = ErrorCode.INTERNAL_ERROR.value,
    error_type: str = ErrorType.INTERNAL.value,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope to stdout and exit with status 1."""
    _print(
        asdict(
            error_response(
                message,
                error_code=code,
                error_type=error_type,
                remediation=remediation,
                details=details,
            )
        )
    )
    sys.exit(1)


def emit_exception(exc: Exception) -> NoReturn:
    """Describe a known failure with the shared error mapping and exit."""
    response = error_to_response(exc)
    if response is None:
        emit_error(f"Summarization failed: {exc}")
    emit_response(response)
    sys.exit(1)
