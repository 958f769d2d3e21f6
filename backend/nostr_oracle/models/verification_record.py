"""VerificationRecord ORM — persisted VerificationResult with its claims and sources.

Invariants:
    - event_id unique: saving the same event twice returns the first record
    - Manual submissions stored under a synthetic "manual_<ms>_<rand>" event_id
    - ClaimRecord.position preserves extraction order
    - cascade delete: record → claims → sources

Design Decisions:
    - Summary counters (cache_hits, verification_errors) denormalized onto the record:
      the dashboard lists results without loading claims
    - selectin loading: results are always rendered with claims and sources
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from nostr_oracle.db.base import Base


class VerificationRecord(Base):
    __tablename__ = "verification_results"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    event_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    claim_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_method: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cache_hits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verification_errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    claims: Mapped[list["ClaimRecord"]] = relationship(
        "ClaimRecord", back_populates="verification",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="ClaimRecord.position",
    )


class ClaimRecord(Base):
    __tablename__ = "verification_claims"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    verification_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("verification_results.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    credibility: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence: Mapped[str] = mapped_column(String(10), nullable=False)
    source_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_error: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    cached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    verification: Mapped["VerificationRecord"] = relationship(
        "VerificationRecord", back_populates="claims",
    )
    sources: Mapped[list["SourceRecord"]] = relationship(
        "SourceRecord", back_populates="claim",
        cascade="all, delete-orphan", lazy="selectin",
    )


class SourceRecord(Base):
    __tablename__ = "claim_sources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    claim_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("verification_claims.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    source: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    url: Mapped[str] = mapped_column(Text, nullable=False)

    claim: Mapped["ClaimRecord"] = relationship("ClaimRecord", back_populates="sources")
