"""
Tests for response helper functions and standard format validation.

Verifies that the response envelope shared by the MCP tools and the CLI
is properly implemented.
"""

from chunkwise.core.context import correlation_scope
from chunkwise.core.responses import (
    ErrorCode,
    ErrorType,
    ToolResponse,
    error_response,
    success_response,
)


class TestToolResponse:
    """Tests for the ToolResponse dataclass."""

    def test_success_response_structure(self):
        """Test that success responses have correct structure."""
        response = ToolResponse(success=True, data={"summary": "text", "chunk_count": 3}, error=None)
        assert response.success is True
        assert response.data == {"summary": "text", "chunk_count": 3}
        assert response.error is None

    def test_default_data_is_empty_dict(self):
        """Test that data defaults to empty dict."""
        response = ToolResponse(success=True, error=None)
        assert response.data == {}

    def test_default_meta_has_version(self):
        response = ToolResponse(success=True)
        assert response.meta == {"version": "response-v2"}


class TestSuccessResponse:
    """Tests for the success_response helper function."""

    def test_creates_success_true(self):
        """Test that success_response sets success=True."""
        response = success_response()
        assert response.success is True
        assert response.error is None

    def test_passes_kwargs_to_data(self):
        """Test that kwargs are included in data."""
        response = success_response(summary="short", chunk_count=2, failed_chunks=[1])
        assert response.data == {"summary": "short", "chunk_count": 2, "failed_chunks": [1]}

    def test_data_mapping_and_kwargs_merge(self):
        response = success_response({"summary": "s"}, aggregation="direct")
        assert response.data == {"summary": "s", "aggregation": "direct"}

    def test_warnings_and_rate_limit_in_meta(self):
        """Non-fatal issues and upstream limits travel in meta, not data."""
        response = success_response(
            summary="s",
            warnings=["2 chunks dropped"],
            rate_limit={"requests_remaining": 10},
            telemetry={"duration_ms": 12},
        )
        assert response.meta["warnings"] == ["2 chunks dropped"]
        assert response.meta["rate_limit"] == {"requests_remaining": 10}
        assert response.meta["telemetry"] == {"duration_ms": 12}
        assert "warnings" not in response.data

    def test_empty_meta_fields_omitted(self):
        response = success_response(summary="s")
        assert "warnings" not in response.meta
        assert "rate_limit" not in response.meta

    def test_request_id_from_correlation_scope(self):
        """The active correlation id becomes meta.request_id."""
        with correlation_scope("run-abc"):
            response = success_response()
        assert response.meta["request_id"] == "run-abc"

    def test_explicit_request_id_wins(self):
        with correlation_scope("run-abc"):
            response = success_response(request_id="req-1")
        assert response.meta["request_id"] == "req-1"


class TestErrorResponse:
    """Tests for the error_response helper function."""

    def test_creates_success_false(self):
        response = error_response("Test error")
        assert response.success is False
        assert response.error == "Test error"

    def test_defaults_to_internal_error(self):
        response = error_response("boom")
        assert response.data["error_code"] == "INTERNAL_ERROR"
        assert response.data["error_type"] == "internal"

    def test_codes_and_remediation(self):
        response = error_response(
            "Rate limit exceeded. Please try again later.",
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            error_type=ErrorType.RATE_LIMIT,
            data={"retry_after": 30},
            remediation="Wait and retry",
        )
        assert response.data == {
            "retry_after": 30,
            "error_code": "RATE_LIMIT_EXCEEDED",
            "error_type": "rate_limit",
            "remediation": "Wait and retry",
        }

    def test_string_codes_accepted(self):
        response = error_response("bad", error_code="VALIDATION_ERROR", error_type="validation")
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert response.data["error_type"] == "validation"
