"""SystemStats ORM — single-row cumulative pipeline statistics.

Invariants:
    - Exactly one row (id = 1), created lazily on first persisted result
    - average_score = total_score / posts_processed (0 when nothing processed)
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from nostr_oracle.db.base import Base

STATS_ROW_ID = 1


class SystemStats(Base):
    __tablename__ = "system_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    posts_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    claims_verified: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
