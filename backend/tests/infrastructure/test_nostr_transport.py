"""Nostr transport — relay frame parsing and Schnorr event signing.

Invariants:
    - Only EVENT frames with a well-formed event produce an IncomingEvent
    - Signed events verify; any tampering breaks verification
"""

import json

from nostr_oracle.core.nostr_events import build_score_event
from nostr_oracle.infrastructure.nostr_relay import RelayListener, parse_relay_frame
from nostr_oracle.infrastructure.nostr_signer import NostrSigner, verify_event

RAW = {"id": "a" * 64, "pubkey": "b" * 64, "content": "hi", "kind": 1, "created_at": 1700000000}


def test_event_frame_parsed():
    event = parse_relay_frame(json.dumps(["EVENT", "sub", RAW]))
    assert event.id == "a" * 64
    assert event.content == "hi"


def test_other_frames_ignored():
    assert parse_relay_frame(json.dumps(["EOSE", "sub"])) is None
    assert parse_relay_frame(json.dumps(["NOTICE", "slow down"])) is None
    assert parse_relay_frame("{not json") is None
    assert parse_relay_frame(json.dumps(["EVENT", "sub", {"content": "no id"}])) is None


def test_signed_event_verifies():
    signer = NostrSigner("22" * 32)
    event = signer.sign(build_score_event("c" * 64, {"score": 80}, 1700000000))
    assert len(event["pubkey"]) == 64
    assert len(event["sig"]) == 128
    assert verify_event(event)


def test_tampered_event_fails():
    signer = NostrSigner("22" * 32)
    event = signer.sign(build_score_event("c" * 64, {"score": 80}, 1700000000))
    assert not verify_event({**event, "content": '{"score":99}'})


def test_same_key_same_pubkey():
    assert NostrSigner("22" * 32).pubkey == NostrSigner("22" * 32).pubkey


def test_invalid_key_gets_ephemeral_identity(caplog):
    signer = NostrSigner("not-hex")
    assert len(signer.pubkey) == 64
    assert "ephemeral" in caplog.text


async def test_publish_without_connections_reaches_nobody():
    async def on_event(event):
        pass

    listener = RelayListener(["wss://relay.example"], on_event)
    assert await listener.publish({"id": "x"}) == 0
    assert listener.connected_count == 0
