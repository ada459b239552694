"""Anthropic Messages API provider.

Talks to ``POST /v1/messages`` with httpx and translates HTTP failures into
the classified error hierarchy. No retries happen here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from chunkwise.core.errors.llm import (
    AuthenticationError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    OverloadedError,
    ProviderConnectionError,
    ProviderTimeoutError,
    RateLimitError,
)
from chunkwise.core.providers.base import (
    CompletionRequest,
    CompletionResponse,
    SummarizationProvider,
)
from chunkwise.core.providers.rate_limits import parse_rate_limit_headers, parse_retry_after

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
MESSAGES_ENDPOINT = "/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
PROVIDER_NAME = "anthropic"


def _error_message(response: httpx.Response) -> str:
    """Extract the API's error message (``{"error": {"message": ...}}``)."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error.get("type") or error)
    if isinstance(error, str):
        return error
    return response.text[:200]


def raise_for_status(response: httpx.Response) -> None:
    """Map an error response to the matching LLMError subclass."""
    status = response.status_code
    if status < 400:
        return

    message = _error_message(response)
    if status == 429:
        raise RateLimitError(
            f"Rate limited: {message}",
            provider=PROVIDER_NAME,
            retry_after=parse_retry_after(response.headers),
        )
    if status in (503, 529):
        raise OverloadedError(f"Overloaded: {message}", provider=PROVIDER_NAME, status_code=status)
    if status in (401, 403):
        raise AuthenticationError(message, provider=PROVIDER_NAME, status_code=status)
    if status == 404:
        raise ModelNotFoundError(message, provider=PROVIDER_NAME)
    if status == 400:
        raise InvalidRequestError(message, provider=PROVIDER_NAME)
    raise LLMError(f"API error {status}: {message}", provider=PROVIDER_NAME, status_code=status)


class AnthropicProvider(SummarizationProvider):
    """Summarization provider backed by the Anthropic Messages API.

    Args:
        api_key: Anthropic API key.
        base_url: API base URL.
        timeout: Per-request timeout in seconds.
        client: Pre-built httpx client (tests pass one with a MockTransport).
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise AuthenticationError("Anthropic API key is not configured", provider=PROVIDER_NAME)
        self._api_key = api_key
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    @staticmethod
    def _payload(request: CompletionRequest) -> dict[str, Any]:
        return {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.user_prompt}],
        }

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        try:
            response = await self._client.post(
                MESSAGES_ENDPOINT,
                json=self._payload(request),
                headers=self._headers(),
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Request to {PROVIDER_NAME} timed out after {self._timeout}s",
                provider=PROVIDER_NAME,
                timeout=self._timeout,
            ) from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"Could not reach {PROVIDER_NAME}: {e}", provider=PROVIDER_NAME) from e

        raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError("Provider returned a non-JSON response", provider=PROVIDER_NAME) from e
        if not isinstance(data, dict):
            raise LLMError(
                f"Provider returned an unexpected {type(data).__name__} body",
                provider=PROVIDER_NAME,
            )

        content = data.get("content")
        text = "".join(
            block.get("text", "")
            for block in (content if isinstance(content, list) else [])
            if isinstance(block, dict) and block.get("type") == "text"
        )
        rate_limit = parse_rate_limit_headers(response.headers)
        logger.debug(
            f"Completion from {data.get('model', request.model)}: {len(text)} chars",
            extra={"rate_limit": rate_limit.to_dict()},
        )
        return CompletionResponse(text=text, model=data.get("model", request.model), rate_limit=rate_limit)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
