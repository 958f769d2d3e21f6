"""Result Aggregation — mean rounding, metadata and stats arithmetic.

Invariants:
    - [40, 60, 80] → 60; empty → 0; half rounds up
    - Misaligned claims/verifications rejected
"""

import pytest

from fakes import NOW

from nostr_oracle.core.aggregate import (
    aggregate_score, apply_result_to_stats, build_metadata, build_verification_result,
)
from nostr_oracle.core.domain_types import Confidence, ExtractionMethod
from nostr_oracle.core.verification_types import ClaimVerification, StatsSnapshot


def _v(score, **kw):
    return ClaimVerification(claim=f"claim {score}", credibility=score, confidence=Confidence.LOW, **kw)


def test_mean_of_scores():
    assert aggregate_score([_v(40), _v(60), _v(80)]) == 60


def test_empty_is_zero():
    assert aggregate_score([]) == 0


def test_half_rounds_up():
    assert aggregate_score([_v(62), _v(63)]) == 63


def test_metadata_counts_cache_hits_and_errors():
    meta = build_metadata(
        ExtractionMethod.REGEX, 12,
        [_v(10, cached=True), _v(20, error="timeout"), _v(30)], text_length=42,
    )
    assert meta == {
        "method": "regex",
        "processingTime": 12,
        "claimCount": 3,
        "textLength": 42,
        "cacheHits": 1,
        "verificationErrors": 1,
    }


def test_result_alignment_enforced():
    with pytest.raises(ValueError):
        build_verification_result("text", ["a", "b"], [_v(10)], NOW)


def test_result_wire_shape():
    result = build_verification_result("text", ["claim 70"], [_v(70)], NOW, event_id="abc")
    data = result.to_dict()
    assert data["eventId"] == "abc"
    assert data["score"] == 70
    assert data["verificationResults"][0]["credibility"] == 70
    assert "error" not in data["verificationResults"][0]


def test_stats_update():
    stats = apply_result_to_stats(StatsSnapshot(), claim_count=3, score=60)
    stats = apply_result_to_stats(stats, claim_count=1, score=81)
    assert stats.posts_processed == 2
    assert stats.claims_verified == 4
    assert stats.total_score == 141
    assert stats.to_dict()["averageScore"] == 70.5
