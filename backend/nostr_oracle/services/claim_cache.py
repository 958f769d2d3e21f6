"""Claim Cache — two ordered tiers (durable, then memory) keyed by claim hash.

Invariants:
    - Key = md5 of lower-cased claim text (core/claim_key.py)
    - lookup() consults the durable tier first and refreshes last_used on a hit;
      a durable hit is enriched with sources from the memory tier when present
    - store() is an idempotent upsert and is always mirrored into memory
    - Durable failures degrade to memory only; they never reach the pipeline
    - purge_stale() is maintenance, never called on the request path

Design Decisions:
    - The durable tier keeps only source_count; sources live in memory
      (they are display data, not scoring data)
    - Unbounded memory tier: one entry per distinct claim over the process
      lifetime, small next to the relay archive
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from sqlalchemy import delete

from nostr_oracle.core.claim_key import claim_hash
from nostr_oracle.core.domain_types import ClaimHash, Confidence
from nostr_oracle.core.errors import DatabaseError, DuplicateRecordError
from nostr_oracle.core.verification_types import SourceRef
from nostr_oracle.infrastructure.database import DatabaseSessionManager
from nostr_oracle.models.claim_cache_entry import ClaimCacheEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedClaim:
    credibility: int
    confidence: Confidence
    source_count: int
    sources: tuple[SourceRef, ...] = ()


class CacheTier(Protocol):
    async def get(self, key: ClaimHash) -> CachedClaim | None: ...

    async def put(self, key: ClaimHash, entry: CachedClaim) -> None: ...


class MemoryCacheTier:
    """Process-local dict tier."""

    def __init__(self):
        self._entries: dict[ClaimHash, CachedClaim] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: ClaimHash) -> CachedClaim | None:
        return self._entries.get(key)

    async def put(self, key: ClaimHash, entry: CachedClaim) -> None:
        self._entries[key] = entry


class DatabaseCacheTier:
    """claim_cache table tier."""

    def __init__(self, db: DatabaseSessionManager):
        self.db = db

    async def get(self, key: ClaimHash) -> CachedClaim | None:
        try:
            async with self.db.session() as session:
                row = await session.get(ClaimCacheEntry, key)
                if row is None:
                    return None
                row.last_used = datetime.now(timezone.utc)
                await session.commit()
                return CachedClaim(
                    credibility=row.credibility,
                    confidence=Confidence(row.confidence),
                    source_count=row.source_count,
                )
        except DatabaseError as e:
            logger.warning(f"Cache read failed, using memory tier: {e.message}")
            return None

    async def put(self, key: ClaimHash, entry: CachedClaim) -> None:
        now = datetime.now(timezone.utc)
        try:
            async with self.db.session() as session:
                row = await session.get(ClaimCacheEntry, key)
                if row is None:
                    session.add(ClaimCacheEntry(
                        claim_hash=key,
                        credibility=entry.credibility,
                        confidence=entry.confidence.value,
                        source_count=entry.source_count,
                        created_at=now,
                        last_used=now,
                    ))
                else:
                    row.credibility = entry.credibility
                    row.confidence = entry.confidence.value
                    row.source_count = entry.source_count
                    row.last_used = now
                await session.commit()
        except DuplicateRecordError:
            pass  # concurrent writer stored the same claim
        except DatabaseError as e:
            logger.warning(f"Cache write failed, kept in memory only: {e.message}")

    async def purge_stale(self, cutoff: datetime) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                delete(ClaimCacheEntry).where(ClaimCacheEntry.last_used < cutoff),
            )
            await session.commit()
            return result.rowcount or 0


class ClaimCache:
    """Lookup/store facade over the durable and memory tiers."""

    def __init__(
        self,
        durable: DatabaseCacheTier | None = None,
        memory: MemoryCacheTier | None = None,
    ):
        self.durable = durable
        self.memory = memory or MemoryCacheTier()

    async def lookup(self, claim: str) -> CachedClaim | None:
        key = claim_hash(claim)
        remembered = await self.memory.get(key)
        if self.durable is not None:
            hit = await self.durable.get(key)
            if hit is not None:
                if remembered is not None and remembered.sources:
                    return CachedClaim(
                        credibility=hit.credibility,
                        confidence=hit.confidence,
                        source_count=hit.source_count,
                        sources=remembered.sources,
                    )
                return hit
        return remembered

    async def store(
        self,
        claim: str,
        credibility: int,
        confidence: Confidence,
        source_count: int,
        sources: tuple[SourceRef, ...] = (),
    ) -> None:
        key = claim_hash(claim)
        entry = CachedClaim(
            credibility=credibility,
            confidence=confidence,
            source_count=source_count,
            sources=tuple(sources),
        )
        await self.memory.put(key, entry)
        if self.durable is not None:
            await self.durable.put(key, entry)

    async def purge_stale(self, max_age_days: int = 30, now: datetime | None = None) -> int:
        """Delete durable entries unused for max_age_days or more."""
        if self.durable is None:
            return 0
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=max_age_days)
        try:
            removed = await self.durable.purge_stale(cutoff)
        except DatabaseError as e:
            logger.warning(f"Cache purge failed: {e.message}")
            return 0
        logger.info(f"Purged {removed} stale cache entries")
        return removed
