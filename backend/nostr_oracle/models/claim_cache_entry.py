"""ClaimCacheEntry ORM — durable tier of the claim verification cache.

Invariants:
    - claim_hash (md5 of lower-cased claim text) is the primary key
    - last_used refreshed on every hit; entries unused 30+ days are purged out-of-band
    - Sources are NOT stored here (only their count)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from nostr_oracle.db.base import Base


class ClaimCacheEntry(Base):
    __tablename__ = "claim_cache"

    claim_hash: Mapped[str] = mapped_column(String(32), primary_key=True)
    credibility: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence: Mapped[str] = mapped_column(String(10), nullable=False)
    source_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_used: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
