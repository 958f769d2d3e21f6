"""Verification Pipeline — extract → score (cached) → aggregate → persist → reward → fan-out.

Invariants:
    - One ClaimVerification per extracted claim, in extraction order
    - Cache hits are marked cached=True; only error-free verdicts are stored in the cache
    - The result is persisted before it is rewarded or broadcast
    - Reward and relay publishing failures never fail the run
    - A result already stored under the same event id is returned as stored and is
      neither rewarded nor re-published

Design Decisions:
    - Claims scored sequentially: the news search quota is the bottleneck, not latency
    - Score announcements (kind 39000) only for relay events, best effort
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Protocol

from nostr_oracle.core.aggregate import build_metadata, build_verification_result
from nostr_oracle.core.nostr_events import build_score_event
from nostr_oracle.core.verification_types import ClaimVerification, VerificationResult
from nostr_oracle.infrastructure.nostr_signer import NostrSigner
from nostr_oracle.services.broadcaster import Broadcaster
from nostr_oracle.services.claim_cache import ClaimCache
from nostr_oracle.services.claim_extractor import ClaimExtractor
from nostr_oracle.services.credibility_scorer import CredibilityScorer
from nostr_oracle.services.result_store import ResultStore
from nostr_oracle.services.reward_trigger import RewardTrigger

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    async def publish(self, event: dict) -> int: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationPipeline:
    """Runs one post through the full verification flow."""

    def __init__(
        self,
        extractor: ClaimExtractor,
        scorer: CredibilityScorer,
        cache: ClaimCache,
        store: ResultStore,
        broadcaster: Broadcaster,
        reward: RewardTrigger | None = None,
        signer: NostrSigner | None = None,
        publisher: EventPublisher | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.extractor = extractor
        self.scorer = scorer
        self.cache = cache
        self.store = store
        self.broadcaster = broadcaster
        self.reward = reward
        self.signer = signer
        self.publisher = publisher
        self.clock = clock

    async def verify(
        self,
        content: str,
        event_id: str | None = None,
        author_pubkey: str | None = None,
    ) -> VerificationResult:
        started = time.monotonic()
        outcome = await self.extractor.extract(content)
        verifications = [await self._verify_claim(c) for c in outcome.claims]

        elapsed_ms = int((time.monotonic() - started) * 1000)
        result = build_verification_result(
            content=content,
            claims=outcome.claims,
            verifications=verifications,
            now=self.clock(),
            event_id=event_id,
            metadata=build_metadata(outcome.method, elapsed_ms, verifications, len(content)),
        )

        saved = await self.store.save(result)
        if not saved.is_new:
            return saved.result

        logger.info(
            f"Verified post: score {result.score}",
            extra={
                "event_id": event_id,
                "score": result.score,
                "claim_count": len(result.claims),
                "cache_hits": result.metadata["cacheHits"],
                "processing_time_ms": elapsed_ms,
            },
        )

        if self.reward is not None:
            zap = await self.reward.reward(result, author_pubkey)
            if zap is not None:
                await self.broadcaster.publish_zap({
                    "eventId": event_id,
                    "amount_sats": zap["amount_sats"],
                    "message": zap["message"],
                    "invoice": zap["invoice"],
                })
                await self.broadcaster.notify(zap["message"], "success")

        await self.broadcaster.publish_verification_result(result)
        await self.broadcaster.publish_stats(await self.store.stats())
        await self._publish_score(result)
        return result

    async def _verify_claim(self, claim: str) -> ClaimVerification:
        cached = await self.cache.lookup(claim)
        if cached is not None:
            return ClaimVerification(
                claim=claim,
                credibility=cached.credibility,
                confidence=cached.confidence,
                sources=cached.sources,
                cached=True,
            )
        verdict = await self.scorer.score(claim)
        if verdict.error is None:
            await self.cache.store(
                claim, verdict.credibility, verdict.confidence,
                len(verdict.sources), verdict.sources,
            )
        return verdict

    async def _publish_score(self, result: VerificationResult) -> None:
        if not result.event_id or self.signer is None or self.publisher is None:
            return
        event = self.signer.sign(build_score_event(
            result.event_id, result.to_dict(), int(self.clock().timestamp()),
        ))
        reached = await self.publisher.publish(event)
        logger.debug(f"Score event sent to {reached} relays", extra={"event_id": result.event_id})
