"""Nostr Event Templates — NIP-01 id computation and unsigned event builders.

Invariants:
    - Event id = sha256 over the canonical [0, pubkey, created_at, kind, tags, content]
      serialization (compact separators, UTF-8, no ASCII escaping)
    - Builders return unsigned templates (no id/pubkey/sig); signing lives in
      infrastructure/nostr_signer.py
"""

import hashlib
import json

from nostr_oracle.core.domain_types import SCORE_EVENT_KIND


def serialize_for_id(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str,
) -> str:
    return json.dumps(
        [0, pubkey, created_at, kind, tags, content],
        separators=(",", ":"),
        ensure_ascii=False,
    )


def compute_event_id(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str,
) -> str:
    serialized = serialize_for_id(pubkey, created_at, kind, tags, content)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def build_score_event(event_id: str, result: dict, created_at: int) -> dict:
    """Kind 39000 score announcement referencing the verified note."""
    return {
        "kind": SCORE_EVENT_KIND,
        "created_at": created_at,
        "tags": [["e", event_id], ["score", str(result["score"])]],
        "content": json.dumps(result, separators=(",", ":"), ensure_ascii=False),
    }
