"""Parsing of upstream rate-limit response headers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

REQUESTS_REMAINING_HEADER = "anthropic-ratelimit-requests-remaining"
INPUT_TOKENS_REMAINING_HEADER = "anthropic-ratelimit-input-tokens-remaining"
OUTPUT_TOKENS_REMAINING_HEADER = "anthropic-ratelimit-output-tokens-remaining"
TOKENS_RESET_HEADER = "anthropic-ratelimit-tokens-reset"
RETRY_AFTER_HEADER = "retry-after"


@dataclass(frozen=True)
class RateLimitInfo:
    """Upstream rate-limit state reported with a response. Missing values are None."""

    requests_remaining: Optional[int] = None
    input_tokens_remaining: Optional[int] = None
    output_tokens_remaining: Optional[int] = None
    reset_time: Optional[str] = None
    retry_after: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()


def _get(headers: Mapping[str, str], name: str) -> Optional[str]:
    # httpx.Headers is case-insensitive; plain dicts are not.
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value


def _int_header(headers: Mapping[str, str], name: str) -> Optional[int]:
    value = _get(headers, name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_retry_after(headers: Mapping[str, str]) -> Optional[float]:
    """Numeric ``retry-after`` in seconds; HTTP-date values are ignored."""
    value = _get(headers, RETRY_AFTER_HEADER)
    if value:
        try:
            return float(value)
        except ValueError:
            pass
    return None


def parse_rate_limit_headers(headers: Optional[Mapping[str, str]]) -> RateLimitInfo:
    """Build a RateLimitInfo from response headers (empty if none were sent)."""
    if not headers:
        return RateLimitInfo()
    return RateLimitInfo(
        requests_remaining=_int_header(headers, REQUESTS_REMAINING_HEADER),
        input_tokens_remaining=_int_header(headers, INPUT_TOKENS_REMAINING_HEADER),
        output_tokens_remaining=_int_header(headers, OUTPUT_TOKENS_REMAINING_HEADER),
        reset_time=_get(headers, TOKENS_RESET_HEADER) or None,
        retry_after=parse_retry_after(headers),
    )
