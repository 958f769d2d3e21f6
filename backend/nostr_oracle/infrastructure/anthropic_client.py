"""Resilient Anthropic Client — claim-extraction calls with bounded retry and error mapping.

Invariants:
    - Every SDK failure is classified once into (error type, retryable)
    - Retryable: rate limits (429), 5xx, 529 overloaded, connection drops
    - Not retryable: timeouts and other 4xx; they fail immediately
    - Callers only ever see AnthropicAPIError (core/errors.py)

Design Decisions:
    - Short retry budget: extraction has a deterministic fallback, so waiting long
      on the model only delays the pipeline
    - Retry-After honoured for 429 but capped at max_delay_ms
    - Timeouts are not retried: the extractor already bounds the whole call and a
      second attempt would overrun it
"""

import asyncio
import logging
import random

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    RateLimitError,
)

from nostr_oracle.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

# HTTP 529 has no dedicated exception class in every SDK release
_OVERLOADED_STATUS = 529


def response_text(response) -> str:
    """Concatenate the text blocks of a Messages API response."""
    parts = [
        getattr(block, "text", "")
        for block in getattr(response, "content", None) or []
        if getattr(block, "type", None) == "text"
    ]
    return "".join(parts).strip()


def classify_error(e: APIError) -> tuple[str, bool]:
    """Map an SDK exception to (api_error_type, retryable)."""
    if isinstance(e, APITimeoutError):
        return "timeout", False
    if isinstance(e, RateLimitError):
        return "rate_limit", True
    if isinstance(e, APIConnectionError):
        return "connection_error", True
    if isinstance(e, APIStatusError):
        if e.status_code == _OVERLOADED_STATUS or e.status_code >= 500:
            return "connection_error", True
        return "client_error", False
    return "unknown", False


def retry_after_ms(e: APIError) -> int | None:
    response = getattr(e, "response", None)
    if response is None:
        return None
    val = response.headers.get("retry-after")
    if val and val.isdigit():
        return int(val) * 1000
    return None


class ResilientAnthropicClient:
    """AsyncAnthropic with this service's retry policy."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 4_000,
        timeout_seconds: float = 8.0,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        temperature: float = 0.1,
        context: ErrorContext | None = None,
    ):
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(
                    model=model,
                    max_tokens=max_tokens,
                    system=system,
                    messages=messages,
                    temperature=temperature,
                )
            except APIError as e:
                error_type, retryable = classify_error(e)
                hint = retry_after_ms(e) if error_type == "rate_limit" else None
                if not retryable or attempt >= self.max_retries:
                    raise AnthropicAPIError(
                        str(e), error_type, retry_after_ms=hint, context=context,
                    ) from e
                delay = self._delay_ms(attempt, hint)
                logger.warning(
                    f"Anthropic {error_type}, retry in {delay}ms: {e}",
                    extra={"attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue
            except Exception as e:
                logger.error(f"Unexpected Anthropic error: {e}", exc_info=True)
                raise AnthropicAPIError(str(e), "unknown", context=context) from e

            usage = getattr(response, "usage", None)
            logger.info(
                "Anthropic API success",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": getattr(usage, "input_tokens", None),
                    "output_tokens": getattr(usage, "output_tokens", None),
                },
            )
            return response

    def _delay_ms(self, attempt: int, hint: int | None) -> int:
        if hint:
            return min(hint, self.max_delay_ms)
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    async def close(self) -> None:
        await self.client.close()
