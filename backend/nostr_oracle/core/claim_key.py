"""Claim Key — cache key derivation for claim verifications.

Invariants:
    - Key is md5 hex of the lower-cased claim text (identical claims always hit,
      regardless of case)
"""

import hashlib

from nostr_oracle.core.domain_types import ClaimHash


def claim_hash(claim: str) -> ClaimHash:
    return ClaimHash(hashlib.md5(claim.lower().encode("utf-8")).hexdigest())  # nosec B324
