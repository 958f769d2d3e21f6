"""Result Store — persistence bridge for verification results, raw events and stats.

Invariants:
    - save() is idempotent per event id: a second save returns the first stored result
      with is_new=False, leaves SystemStats untouched and does not re-list it, with or
      without a database
    - The result row, its claims/sources and the SystemStats update commit together
    - Manual submissions (event_id None) are stored under a synthetic
      "manual_<ms>_<rand>" id; callers and readers only ever see event_id None
    - Every newly saved result is pushed onto the bounded newest-first recent list,
      even when the database is unavailable
    - Database failures never propagate: reads fall back to memory, uniqueness
      races are silent

Design Decisions:
    - Stats kept in a single row read-modify-written inside the insert transaction
      (arithmetic in core/aggregate.py)
    - In-memory counters mirror every new result so stats() stays meaningful while
      the database is down
    - Known event ids kept in a bounded insertion-ordered map: duplicates are caught
      without a round trip and still caught when the database is down
"""

import logging
import secrets
import time
from collections import OrderedDict, deque
from datetime import datetime, timezone
from typing import NamedTuple

from sqlalchemy import select

from nostr_oracle.core.aggregate import apply_result_to_stats
from nostr_oracle.core.domain_types import Confidence
from nostr_oracle.core.errors import DatabaseError, DuplicateRecordError
from nostr_oracle.core.verification_types import (
    ClaimVerification, IncomingEvent, SourceRef, StatsSnapshot, VerificationResult,
)
from nostr_oracle.infrastructure.database import DatabaseSessionManager
from nostr_oracle.models.nostr_event import NostrEvent
from nostr_oracle.models.system_stats import STATS_ROW_ID, SystemStats
from nostr_oracle.models.verification_record import (
    ClaimRecord, SourceRecord, VerificationRecord,
)

logger = logging.getLogger(__name__)

MANUAL_ID_PREFIX = "manual_"


def manual_event_id() -> str:
    return f"{MANUAL_ID_PREFIX}{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def public_event_id(storage_id: str) -> str | None:
    return None if storage_id.startswith(MANUAL_ID_PREFIX) else storage_id


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def record_to_result(record: VerificationRecord) -> VerificationResult:
    verifications = [
        ClaimVerification(
            claim=c.text,
            credibility=c.credibility,
            confidence=Confidence(c.confidence),
            sources=tuple(SourceRef(s.title, s.source, s.url) for s in c.sources),
            error=c.error_message if c.has_error else None,
            cached=c.cached,
        )
        for c in record.claims
    ]
    return VerificationResult(
        event_id=public_event_id(record.event_id),
        content=record.content,
        claims=[v.claim for v in verifications],
        verification_results=verifications,
        score=record.overall_score,
        timestamp=_as_utc(record.created_at),
        metadata={
            "method": record.processing_method,
            "processingTime": record.processing_time_ms,
            "claimCount": record.claim_count,
            "textLength": len(record.content),
            "cacheHits": record.cache_hits,
            "verificationErrors": record.verification_errors,
        },
    )


def result_to_record(result: VerificationResult, storage_id: str) -> VerificationRecord:
    meta = result.metadata
    record = VerificationRecord(
        event_id=storage_id,
        content=result.content,
        overall_score=result.score,
        claim_count=len(result.claims),
        processing_method=meta.get("method", "unknown"),
        processing_time_ms=int(meta.get("processingTime", 0)),
        cache_hits=int(meta.get("cacheHits", 0)),
        verification_errors=int(meta.get("verificationErrors", 0)),
        created_at=result.timestamp,
    )
    for position, v in enumerate(result.verification_results):
        record.claims.append(ClaimRecord(
            position=position,
            text=v.claim,
            credibility=v.credibility,
            confidence=v.confidence.value,
            source_count=len(v.sources),
            has_error=v.error is not None,
            error_message=v.error,
            cached=v.cached,
            sources=[SourceRecord(title=s.title, source=s.source, url=s.url) for s in v.sources],
        ))
    return record


class SavedResult(NamedTuple):
    """Outcome of ResultStore.save(): the stored result and whether this call stored it."""
    result: VerificationResult
    is_new: bool


class ResultStore:
    """Durable history with an in-memory mirror."""

    def __init__(
        self,
        db: DatabaseSessionManager | None = None,
        recent_limit: int = 20,
        known_limit: int = 5_000,
    ):
        self.db = db
        self.recent_limit = recent_limit
        self.known_limit = known_limit
        self._recent: deque[VerificationResult] = deque(maxlen=recent_limit)
        self._known: OrderedDict[str, VerificationResult] = OrderedDict()
        self._memory_stats = StatsSnapshot()

    async def save(self, result: VerificationResult) -> SavedResult:
        """Persist a result once; a repeated event id yields the first stored result."""
        known = self._known.get(result.event_id) if result.event_id else None
        if known is not None:
            logger.info("Result already stored, returning it", extra={"event_id": result.event_id})
            return SavedResult(known, False)

        saved, is_new = await self._persist(result)
        self._remember(saved)
        if is_new:
            self._memory_stats = apply_result_to_stats(
                self._memory_stats, len(saved.claims), saved.score,
            )
            self._recent.appendleft(saved)
        return SavedResult(saved, is_new)

    def _remember(self, result: VerificationResult) -> None:
        if not result.event_id:
            return
        self._known[result.event_id] = result
        while len(self._known) > self.known_limit:
            self._known.popitem(last=False)

    async def _persist(self, result: VerificationResult) -> tuple[VerificationResult, bool]:
        if self.db is None:
            return result, True

        storage_id = result.event_id or manual_event_id()
        try:
            async with self.db.session() as session:
                existing = await session.scalar(
                    select(VerificationRecord).where(VerificationRecord.event_id == storage_id),
                )
                if existing is not None:
                    logger.info(
                        "Result already stored, returning existing record",
                        extra={"event_id": storage_id},
                    )
                    return record_to_result(existing), False

                session.add(result_to_record(result, storage_id))
                stats_row = await session.get(SystemStats, STATS_ROW_ID)
                if stats_row is None:
                    stats_row = SystemStats(id=STATS_ROW_ID)
                    session.add(stats_row)
                updated = apply_result_to_stats(
                    self._row_to_snapshot(stats_row), len(result.claims), result.score,
                )
                stats_row.posts_processed = updated.posts_processed
                stats_row.claims_verified = updated.claims_verified
                stats_row.total_score = updated.total_score
                stats_row.average_score = updated.average_score
                await session.commit()
        except DuplicateRecordError:
            # Another writer stored this event between our check and commit
            return await self._load_existing(storage_id, result), False
        except DatabaseError as e:
            logger.warning(
                f"Result not persisted, kept in memory: {e.message}",
                extra={"event_id": result.event_id},
            )
            return result, True
        return result, True

    async def _load_existing(
        self, storage_id: str, fallback: VerificationResult,
    ) -> VerificationResult:
        try:
            async with self.db.session() as session:
                existing = await session.scalar(
                    select(VerificationRecord).where(VerificationRecord.event_id == storage_id),
                )
        except DatabaseError as e:
            logger.warning(f"Stored result reload failed: {e.message}", extra={"event_id": storage_id})
            return fallback
        return record_to_result(existing) if existing is not None else fallback

    @staticmethod
    def _row_to_snapshot(row: SystemStats) -> StatsSnapshot:
        return StatsSnapshot(
            posts_processed=row.posts_processed or 0,
            claims_verified=row.claims_verified or 0,
            total_score=row.total_score or 0,
            average_score=row.average_score or 0.0,
        )

    async def save_event(self, event: IncomingEvent) -> bool:
        """Archive a raw relay event (best effort). Returns True if newly stored."""
        if self.db is None:
            return False
        try:
            created_at = datetime.fromtimestamp(event.created_at, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning(
                f"Raw event not archived: created_at {event.created_at} out of range",
                extra={"event_id": event.id},
            )
            return False
        try:
            async with self.db.session() as session:
                exists = await session.scalar(
                    select(NostrEvent.id).where(NostrEvent.event_id == event.id),
                )
                if exists is not None:
                    return False
                session.add(NostrEvent(
                    event_id=event.id,
                    pubkey=event.pubkey,
                    content=event.content,
                    kind=event.kind,
                    created_at=created_at,
                ))
                await session.commit()
                return True
        except DuplicateRecordError:
            return False
        except DatabaseError as e:
            logger.warning(f"Raw event not archived: {e.message}", extra={"event_id": event.id})
            return False

    async def recent(self, limit: int | None = None) -> list[VerificationResult]:
        """Newest-first results, durable when available, else the in-memory list."""
        limit = min(limit or self.recent_limit, self.recent_limit)
        if self.db is not None:
            try:
                async with self.db.session() as session:
                    rows = await session.scalars(
                        select(VerificationRecord)
                        .order_by(VerificationRecord.created_at.desc())
                        .limit(limit),
                    )
                    results = [record_to_result(r) for r in rows.all()]
                if results:
                    return results
            except DatabaseError as e:
                logger.warning(f"Recent results read failed, using memory: {e.message}")
        return list(self._recent)[:limit]

    async def stats(self) -> StatsSnapshot:
        if self.db is not None:
            try:
                async with self.db.session() as session:
                    row = await session.get(SystemStats, STATS_ROW_ID)
                    if row is not None:
                        return self._row_to_snapshot(row)
            except DatabaseError as e:
                logger.warning(f"Stats read failed, using memory counters: {e.message}")
        return self._memory_stats
