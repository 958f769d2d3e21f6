"""Claim Extractor — ordered strategies: language model first, pattern fallback.

Invariants:
    - extract() never raises for provider failures: any model error, timeout or
      unparseable reply falls through to the pattern strategy
    - A strategy without its credential raises ConfigurationMissingError before any
      network call; the extractor skips it and logs each missing setting once
    - An empty model reply ([]) is a valid answer: no fallback
    - metadata.method names the strategy that produced the claims

Design Decisions:
    - Strategy list over if/else: tests inject fakes, deployments can add providers
    - The model strategy returns None to signal "fall through", never an empty list
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

from nostr_oracle.core.claim_extraction import extract_claims_by_pattern, parse_claim_array
from nostr_oracle.core.domain_types import ExtractionMethod
from nostr_oracle.core.errors import (
    AnthropicAPIError, ConfigurationMissingError, ErrorContext,
)
from nostr_oracle.infrastructure.anthropic_client import (
    ResilientAnthropicClient, response_text,
)

logger = logging.getLogger(__name__)

EXTRACTION_SYSTEM_PROMPT = (
    "You extract verifiable factual claims from social media posts. "
    "A claim is a statement about the world that could be checked against news "
    "coverage: events, numbers, office holders, announcements. Ignore opinions, "
    "questions, jokes and greetings. Rewrite each claim as a short standalone "
    "sentence. Reply with ONLY a JSON array of strings, for example "
    '["The ECB raised rates to 4%"]. Reply with [] when there are no claims.'
)


@dataclass
class ExtractionOutcome:
    claims: list[str]
    metadata: dict = field(default_factory=dict)

    @property
    def method(self) -> ExtractionMethod:
        return ExtractionMethod(self.metadata["method"])


class ClaimExtractionStrategy(Protocol):
    """Returns claims, None to fall through, or raises ConfigurationMissingError."""
    method: ExtractionMethod

    async def extract(self, text: str) -> list[str] | None: ...


class AnthropicClaimStrategy:
    """Asks the model for a JSON array of claims."""

    method = ExtractionMethod.AI

    def __init__(
        self,
        client: ResilientAnthropicClient | None,
        model: str,
        max_tokens: int = 500,
        timeout_seconds: float = 8.0,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    async def extract(self, text: str) -> list[str] | None:
        if self.client is None:
            raise ConfigurationMissingError("ANTHROPIC_API_KEY")
        try:
            response = await asyncio.wait_for(
                self.client.create_message(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=EXTRACTION_SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": text}],
                    temperature=0.1,
                    context=ErrorContext(debug_info={"text_length": len(text)}),
                ),
                self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Claim extraction timed out, falling back to patterns")
            return None
        except AnthropicAPIError as e:
            logger.warning(f"Claim extraction failed: {e.message}", extra={"error_code": e.code})
            return None

        claims = parse_claim_array(response_text(response))
        if claims is None:
            logger.warning("Model reply was not a JSON array, falling back to patterns")
        return claims


class PatternClaimStrategy:
    """Sentence heuristics; always produces an answer."""

    method = ExtractionMethod.REGEX

    async def extract(self, text: str) -> list[str] | None:
        return extract_claims_by_pattern(text)


class ClaimExtractor:
    """Runs strategies in order until one produces a claim list."""

    def __init__(self, strategies: list[ClaimExtractionStrategy]):
        if not strategies:
            raise ValueError("ClaimExtractor needs at least one strategy")
        self.strategies = strategies
        self._unconfigured: set[str] = set()

    @classmethod
    def from_settings(
        cls, settings, client: ResilientAnthropicClient | None,
    ) -> "ClaimExtractor":
        return cls([
            AnthropicClaimStrategy(
                client,
                model=settings.extraction_model,
                max_tokens=settings.extraction_max_tokens,
                timeout_seconds=settings.outbound_timeout_seconds,
            ),
            PatternClaimStrategy(),
        ])

    async def extract(self, text: str) -> ExtractionOutcome:
        started = time.monotonic()
        claims: list[str] = []
        method = self.strategies[-1].method
        for strategy in self.strategies:
            try:
                result = await strategy.extract(text)
            except ConfigurationMissingError as e:
                if e.setting not in self._unconfigured:
                    logger.warning(
                        f"{e.setting} not configured, skipping {strategy.method.value} extraction",
                        extra={"error_code": e.code},
                    )
                    self._unconfigured.add(e.setting)
                continue
            if result is not None:
                claims, method = result, strategy.method
                break
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Extracted {len(claims)} claims",
            extra={"claim_count": len(claims), "method": method.value},
        )
        return ExtractionOutcome(
            claims=claims,
            metadata={
                "method": method.value,
                "processingTime": elapsed_ms,
                "claimCount": len(claims),
                "textLength": len(text),
            },
        )
