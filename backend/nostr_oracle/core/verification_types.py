"""Verification Types — immutable value objects flowing through the pipeline.

Invariants:
    - IncomingEvent, SourceRef, Article, ClaimVerification are frozen (never mutated)
    - VerificationResult.claims and .verification_results are order-aligned, equal length
    - to_dict() produces the camelCase wire shape shared by REST and the live feed

Design Decisions:
    - Dataclasses over Pydantic: core stays dependency-free, schemas/ owns HTTP validation
    - VerificationResult.metadata is a plain dict: the reward stage merges `zap` into it
      after persistence, before broadcast
"""

from dataclasses import dataclass, field
from datetime import datetime

from nostr_oracle.core.domain_types import Confidence


@dataclass(frozen=True)
class IncomingEvent:
    """A Nostr note as delivered by a relay subscription."""
    id: str
    pubkey: str
    content: str
    kind: int
    created_at: int  # unix seconds

    @classmethod
    def from_relay(cls, raw: dict) -> "IncomingEvent":
        """Build from a relay EVENT payload. Raises ValueError on malformed input."""
        try:
            return cls(
                id=str(raw["id"]),
                pubkey=str(raw["pubkey"]),
                content=str(raw.get("content") or ""),
                kind=int(raw.get("kind", 1)),
                created_at=int(raw["created_at"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed relay event: {e}") from e

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "content": self.content,
            "kind": self.kind,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class SourceRef:
    """One matching article, as shown to users."""
    title: str
    source: str
    url: str

    def to_dict(self) -> dict:
        return {"title": self.title, "source": self.source, "url": self.url}


@dataclass(frozen=True)
class Article:
    """Raw search hit — SourceRef plus the metadata the scorer needs."""
    title: str
    source: str
    url: str
    description: str = ""
    published_at: datetime | None = None

    def to_source_ref(self) -> SourceRef:
        return SourceRef(title=self.title, source=self.source, url=self.url)


@dataclass(frozen=True)
class ClaimVerification:
    """Credibility verdict for a single claim."""
    claim: str
    credibility: int
    confidence: Confidence
    sources: tuple[SourceRef, ...] = ()
    error: str | None = None
    cached: bool = False

    def to_dict(self) -> dict:
        data = {
            "claim": self.claim,
            "credibility": self.credibility,
            "confidence": self.confidence.value,
            "sources": [s.to_dict() for s in self.sources],
            "cached": self.cached,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class VerificationResult:
    """Outcome of one pipeline run over a post."""
    event_id: str | None
    content: str
    claims: list[str]
    verification_results: list[ClaimVerification]
    score: int
    timestamp: datetime
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "eventId": self.event_id,
            "content": self.content,
            "claims": list(self.claims),
            "verificationResults": [v.to_dict() for v in self.verification_results],
            "score": self.score,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class StatsSnapshot:
    """Cumulative pipeline statistics (single row in the store)."""
    posts_processed: int = 0
    claims_verified: int = 0
    total_score: int = 0
    average_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "postsProcessed": self.posts_processed,
            "claimsVerified": self.claims_verified,
            "averageScore": round(self.average_score, 2),
        }
