"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - EventId, Pubkey are hex strings issued by Nostr relays
    - ClaimHash is the md5 hex digest of lower-cased claim text
    - Credibility scores are integers bounded 0–100
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (live feed + REST share payloads)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

EventId = NewType("EventId", str)
Pubkey = NewType("Pubkey", str)
ClaimHash = NewType("ClaimHash", str)


# ─── Value Types ─────────────────────────────────────────────────

CredibilityScore = NewType("CredibilityScore", int)   # 0–100

MIN_SCORE = 0
MAX_SCORE = 100


# ─── Nostr Kinds ─────────────────────────────────────────────────

TEXT_NOTE_KIND = 1
ZAP_REQUEST_KIND = 9734
SCORE_EVENT_KIND = 39000


# ─── Enums ───────────────────────────────────────────────────────

class Confidence(str, Enum):
    """Coarse confidence label derived from a credibility score."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExtractionMethod(str, Enum):
    """Which extraction strategy produced the claim list."""
    AI = "ai"
    REGEX = "regex"


class Topic(str, Enum):
    """Live-feed topics clients opt into via subscribe/unsubscribe."""
    VERIFICATION_RESULTS = "verification_results"
    NOSTR_EVENTS = "nostr_events"
    LIGHTNING_ZAPS = "lightning_zaps"
    SYSTEM_STATS = "system_stats"


class LiveEvent(str, Enum):
    """Server → client message names on the live feed."""
    CONNECTION_ESTABLISHED = "connection_established"
    VERIFICATION_RESULT = "verification_result"
    NOSTR_EVENT = "nostr_event"
    LIGHTNING_ZAP = "lightning_zap"
    SYSTEM_STATS = "system_stats"
    NOTIFICATION = "notification"
    PONG = "pong"


# Message name delivered on each topic
TOPIC_EVENTS: dict[Topic, LiveEvent] = {
    Topic.VERIFICATION_RESULTS: LiveEvent.VERIFICATION_RESULT,
    Topic.NOSTR_EVENTS: LiveEvent.NOSTR_EVENT,
    Topic.LIGHTNING_ZAPS: LiveEvent.LIGHTNING_ZAP,
    Topic.SYSTEM_STATS: LiveEvent.SYSTEM_STATS,
}


def parse_topics(names: list[str] | None) -> set[Topic]:
    """Map client-supplied topic names to Topics, ignoring unknown names."""
    known = {t.value: t for t in Topic}
    return {known[n] for n in names or [] if isinstance(n, str) and n in known}
