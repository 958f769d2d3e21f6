"""Live envelopes and Nostr event templates.

Invariants:
    - Previews cut at the limit with "..." only when truncated
    - Event id is sha256 of the canonical compact serialization
"""

import hashlib

import pytest

from fakes import NOW

from nostr_oracle.core.domain_types import Topic, parse_topics
from nostr_oracle.core.envelope import build_envelope, preview_event
from nostr_oracle.core.nostr_events import build_score_event, compute_event_id, serialize_for_id
from nostr_oracle.core.verification_types import IncomingEvent


def _event(content):
    return IncomingEvent(id="id1", pubkey="pk1", content=content, kind=1, created_at=1)


def test_preview_truncates_long_content():
    preview = preview_event(_event("x" * 250))
    assert preview["content"] == "x" * 200 + "..."


def test_preview_keeps_short_content():
    assert preview_event(_event("short"))["content"] == "short"


def test_envelope_shape():
    env = build_envelope("nostr_event", {"a": 1}, NOW)
    assert env == {"type": "nostr_event", "data": {"a": 1}, "timestamp": NOW.isoformat()}


def test_parse_topics_ignores_unknown():
    assert parse_topics(["nostr_events", "bogus", 3]) == {Topic.NOSTR_EVENTS}
    assert parse_topics(None) == set()


def test_event_id_is_canonical_sha256():
    serialized = serialize_for_id("pk", 10, 1, [["e", "x"]], "hé")
    assert serialized == '[0,"pk",10,1,[["e","x"]],"hé"]'
    assert compute_event_id("pk", 10, 1, [["e", "x"]], "hé") == hashlib.sha256(
        serialized.encode("utf-8"),
    ).hexdigest()


def test_score_event_template():
    ev = build_score_event("abc", {"score": 72}, 1700000000)
    assert ev["kind"] == 39000
    assert ev["tags"] == [["e", "abc"], ["score", "72"]]
    assert ev["content"] == '{"score":72}'


def test_incoming_event_rejects_malformed():
    with pytest.raises(ValueError):
        IncomingEvent.from_relay({"content": "no id"})
