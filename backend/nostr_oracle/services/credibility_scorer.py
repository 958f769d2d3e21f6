"""Credibility Scorer — search news coverage for a claim and score it.

Invariants:
    - score() always returns a ClaimVerification; search failures become a fallback
      verdict (established 65 / general 30, confidence low) annotated with `error`
    - Sources are the articles the search returned, in result order
    - Every search bounded by timeout_seconds
    - A missing search credential is warned about once, then scored silently

Design Decisions:
    - Scoring math lives in core/credibility.py (pure); this service only does IO
    - ArticleSearch protocol: tests substitute a canned search, NewsSearchClient in production
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

from nostr_oracle.core.credibility import (
    compute_credibility, optimize_search_query, search_failure_score,
)
from nostr_oracle.core.domain_types import Confidence
from nostr_oracle.core.errors import ConfigurationMissingError, SearchError
from nostr_oracle.core.scoring_policy import DEFAULT_POLICY, ScoringPolicy
from nostr_oracle.core.verification_types import Article, ClaimVerification

logger = logging.getLogger(__name__)


class ArticleSearch(Protocol):
    async def search(self, query: str) -> list[Article]: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredibilityScorer:
    """Scores one claim at a time against the news search."""

    def __init__(
        self,
        search: ArticleSearch,
        policy: ScoringPolicy = DEFAULT_POLICY,
        timeout_seconds: float = 8.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.search = search
        self.policy = policy
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self._warned_unconfigured = False

    async def score(self, claim: str) -> ClaimVerification:
        query = optimize_search_query(claim, self.policy)
        try:
            articles = await asyncio.wait_for(self.search.search(query), self.timeout_seconds)
        except asyncio.TimeoutError:
            return self._fallback(claim, "search timed out")
        except SearchError as e:
            return self._fallback(claim, e.message)
        except ConfigurationMissingError as e:
            if not self._warned_unconfigured:
                logger.warning(f"{e.setting} not configured, every claim gets the fallback score")
                self._warned_unconfigured = True
            return self._fallback(claim, e.message, log=False)

        breakdown = compute_credibility(claim, articles, self.clock(), self.policy)
        logger.debug(
            f"Scored claim {claim[:60]!r}: {breakdown.score} "
            f"(rel={breakdown.relevance:.1f} q={breakdown.quality:.1f} "
            f"c={breakdown.consensus:.1f} r={breakdown.recency:.1f})",
            extra={"score": breakdown.score},
        )
        return ClaimVerification(
            claim=claim,
            credibility=breakdown.score,
            confidence=breakdown.confidence,
            sources=tuple(a.to_source_ref() for a in articles),
        )

    def _fallback(self, claim: str, reason: str, log: bool = True) -> ClaimVerification:
        score = search_failure_score(claim, self.policy)
        if log:
            logger.warning(f"Search failed, fallback score {score}: {reason}", extra={"score": score})
        return ClaimVerification(
            claim=claim,
            credibility=score,
            confidence=Confidence.LOW,
            error=reason,
        )
