"""ORM Models — SQLAlchemy declarative models for persisted pipeline data.

Invariants:
    - All models inherit from Base (db/base.py)
    - VerificationRecord is the aggregate root for claims and sources

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from nostr_oracle.models.system_stats import SystemStats  # noqa: F401
from nostr_oracle.models.nostr_event import NostrEvent  # noqa: F401
from nostr_oracle.models.verification_record import (  # noqa: F401
    VerificationRecord, ClaimRecord, SourceRecord,
)
from nostr_oracle.models.claim_cache_entry import ClaimCacheEntry  # noqa: F401
