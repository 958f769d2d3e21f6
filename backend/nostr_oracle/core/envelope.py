"""Live Feed Envelopes — message shapes pushed to live subscribers.

Invariants:
    - Every topic message is {type, data, timestamp}
    - Raw-event previews cap content at `limit` characters ("..." appended when cut)
"""

from datetime import datetime

from nostr_oracle.core.verification_types import IncomingEvent

RAW_EVENT_PREVIEW_CHARS = 200


def build_envelope(event_type: str, data: dict, now: datetime) -> dict:
    return {"type": event_type, "data": data, "timestamp": now.isoformat()}


def preview_event(event: IncomingEvent, limit: int = RAW_EVENT_PREVIEW_CHARS) -> dict:
    """Truncated copy of a raw event for the nostr_events topic."""
    content = event.content
    if len(content) > limit:
        content = content[:limit] + "..."
    return {
        "id": event.id,
        "pubkey": event.pubkey,
        "content": content,
        "kind": event.kind,
        "created_at": event.created_at,
    }
