"""Result Aggregation — combine per-claim verdicts into a VerificationResult.

Invariants:
    - Pure: no IO, `now` is passed in
    - Aggregate score = mean of credibilities rounded half-up, 0 when there are no claims
    - claims and verifications must be order-aligned and equal length (ValueError otherwise)
    - apply_result_to_stats never mutates its input

Design Decisions:
    - Half-up rounding (floor(x + 0.5)) instead of round(): banker's rounding would
      score a 62.5 mean as 62
"""

import math
from datetime import datetime

from nostr_oracle.core.domain_types import ExtractionMethod, MAX_SCORE, MIN_SCORE
from nostr_oracle.core.verification_types import (
    ClaimVerification, StatsSnapshot, VerificationResult,
)


def aggregate_score(verifications: list[ClaimVerification]) -> int:
    if not verifications:
        return 0
    mean = sum(v.credibility for v in verifications) / len(verifications)
    return max(MIN_SCORE, min(MAX_SCORE, math.floor(mean + 0.5)))


def build_metadata(
    method: ExtractionMethod,
    processing_time_ms: int,
    verifications: list[ClaimVerification],
    text_length: int,
) -> dict:
    return {
        "method": method.value,
        "processingTime": processing_time_ms,
        "claimCount": len(verifications),
        "textLength": text_length,
        "cacheHits": sum(1 for v in verifications if v.cached),
        "verificationErrors": sum(1 for v in verifications if v.error),
    }


def build_verification_result(
    content: str,
    claims: list[str],
    verifications: list[ClaimVerification],
    now: datetime,
    event_id: str | None = None,
    metadata: dict | None = None,
) -> VerificationResult:
    if len(claims) != len(verifications):
        raise ValueError(
            f"claims/verifications misaligned: {len(claims)} != {len(verifications)}",
        )
    return VerificationResult(
        event_id=event_id,
        content=content,
        claims=list(claims),
        verification_results=list(verifications),
        score=aggregate_score(verifications),
        timestamp=now,
        metadata=dict(metadata or {}),
    )


def apply_result_to_stats(
    stats: StatsSnapshot, claim_count: int, score: int,
) -> StatsSnapshot:
    """Read-modify-write step for SystemStats after one new persisted result."""
    posts = stats.posts_processed + 1
    total = stats.total_score + score
    return StatsSnapshot(
        posts_processed=posts,
        claims_verified=stats.claims_verified + claim_count,
        total_score=total,
        average_score=total / posts,
    )
