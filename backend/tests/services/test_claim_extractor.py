"""Claim Extractor — model strategy with pattern fallback.

Invariants:
    - Model JSON array → method ai; [] accepted as-is
    - Any model failure (error, timeout, malformed) → pattern fallback, method regex
    - Missing credential → no call, warning logged once per extractor
"""

import asyncio
import logging

import pytest

from fakes import FakeAnthropic

from nostr_oracle.core.errors import AnthropicAPIError, ConfigurationMissingError
from nostr_oracle.services.claim_extractor import (
    AnthropicClaimStrategy, ClaimExtractor, PatternClaimStrategy,
)

TEXT = "Bitcoin was created in 2009. What a ride!"


def _extractor(client, timeout=1.0):
    return ClaimExtractor([
        AnthropicClaimStrategy(client, model="test-model", timeout_seconds=timeout),
        PatternClaimStrategy(),
    ])


async def test_model_claims_used():
    client = FakeAnthropic('["Bitcoin launched in 2009"]')
    outcome = await _extractor(client).extract(TEXT)
    assert outcome.claims == ["Bitcoin launched in 2009"]
    assert outcome.metadata["method"] == "ai"
    assert outcome.metadata["textLength"] == len(TEXT)
    assert client.calls[0]["messages"] == [{"role": "user", "content": TEXT}]


async def test_empty_model_answer_is_final():
    outcome = await _extractor(FakeAnthropic("[]")).extract(TEXT)
    assert outcome.claims == []
    assert outcome.metadata["method"] == "ai"


async def test_malformed_reply_falls_back():
    outcome = await _extractor(FakeAnthropic("Sure! Here are the claims.")).extract(TEXT)
    assert outcome.claims == ["Bitcoin was created in 2009."]
    assert outcome.metadata["method"] == "regex"


async def test_api_error_falls_back():
    client = FakeAnthropic(error=AnthropicAPIError("boom", "connection_error"))
    outcome = await _extractor(client).extract(TEXT)
    assert outcome.metadata["method"] == "regex"
    assert outcome.metadata["claimCount"] == 1


async def test_timeout_falls_back():
    class SlowClient(FakeAnthropic):
        async def create_message(self, **kwargs):
            await asyncio.sleep(5)

    outcome = await _extractor(SlowClient(), timeout=0.01).extract(TEXT)
    assert outcome.metadata["method"] == "regex"


async def test_missing_credential_warns_once(caplog):
    extractor = _extractor(None)
    with caplog.at_level(logging.WARNING):
        await extractor.extract(TEXT)
        await extractor.extract(TEXT)
    warnings = [r for r in caplog.records if "ANTHROPIC_API_KEY" in r.getMessage()]
    assert len(warnings) == 1


async def test_fallback_bounds():
    outcome = await ClaimExtractor([PatternClaimStrategy()]).extract("  gm  ")
    assert outcome.claims == []


async def test_unconfigured_model_strategy_signals_missing_key():
    strategy = AnthropicClaimStrategy(None, model="test-model")
    with pytest.raises(ConfigurationMissingError) as exc:
        await strategy.extract(TEXT)
    assert exc.value.setting == "ANTHROPIC_API_KEY"
    outcome = await _extractor(None).extract(TEXT)
    assert outcome.metadata["method"] == "regex"
