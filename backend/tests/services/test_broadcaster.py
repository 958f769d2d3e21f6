"""Broadcaster — topic isolation, idempotent subscriptions, failure eviction.

Invariants:
    - Topic messages reach only subscribers; notify() reaches everyone
    - Unsubscribed clients stop receiving; unknown topics ignored
    - A failing connection is dropped without affecting the others
"""

from fakes import NOW, FakeConnection

from nostr_oracle.core.domain_types import Topic
from nostr_oracle.core.verification_types import IncomingEvent, StatsSnapshot


async def _connected(broadcaster, client_id, topics=(), fail=False):
    conn = FakeConnection(client_id, fail=fail)
    await broadcaster.connect(conn)
    broadcaster.subscribe(client_id, list(topics))
    return conn


async def test_connect_sends_welcome(broadcaster):
    conn = await _connected(broadcaster, "c1")
    event, payload = conn.frames[0]
    assert event == "connection_established"
    assert payload["clientId"] == "c1"
    assert payload["timestamp"] == NOW.isoformat()


async def test_topic_isolation(broadcaster):
    a = await _connected(broadcaster, "a", ["verification_results"])
    b = await _connected(broadcaster, "b", ["nostr_events"])

    delivered = await broadcaster.publish(Topic.VERIFICATION_RESULTS, {"score": 70})

    assert delivered == 1
    assert a.events()[-1] == "verification_result"
    assert a.frames[-1][1] == {
        "type": "verification_result", "data": {"score": 70}, "timestamp": NOW.isoformat(),
    }
    assert b.events() == ["connection_established"]


async def test_unsubscribe_stops_delivery(broadcaster):
    a = await _connected(broadcaster, "a", ["system_stats"])
    broadcaster.unsubscribe("a", ["system_stats"])
    await broadcaster.publish_stats(StatsSnapshot())
    assert a.events() == ["connection_established"]


async def test_subscribe_is_idempotent_and_ignores_unknown(broadcaster):
    await _connected(broadcaster, "a", ["system_stats", "bogus"])
    topics = broadcaster.subscribe("a", ["system_stats"])
    assert topics == {Topic.SYSTEM_STATS}
    assert broadcaster.status()["topics"]["system_stats"] == 1


async def test_notify_reaches_everyone(broadcaster):
    a = await _connected(broadcaster, "a")
    b = await _connected(broadcaster, "b", ["nostr_events"])
    assert await broadcaster.notify("relay down", "warning") == 2
    for conn in (a, b):
        event, payload = conn.frames[-1]
        assert event == "notification"
        assert payload["data"]["message"] == "relay down"
        assert payload["data"]["type"] == "warning"


async def test_failing_connection_is_dropped(broadcaster):
    good = await _connected(broadcaster, "good", ["nostr_events"])
    bad = FakeConnection("bad")
    await broadcaster.connect(bad)
    broadcaster.subscribe("bad", ["nostr_events"])
    bad.fail = True

    event = IncomingEvent(id="e1", pubkey="p1", content="y" * 300, kind=1, created_at=1)
    assert await broadcaster.publish_nostr_event(event) == 1

    assert "bad" not in broadcaster.registry
    assert good.frames[-1][1]["data"]["content"] == "y" * 200 + "..."


async def test_ping_pong(broadcaster):
    conn = await _connected(broadcaster, "a")
    await broadcaster.handle_message(conn, "ping", {})
    assert conn.events()[-1] == "pong"
    assert isinstance(conn.frames[-1][1]["timestamp"], int)


async def test_handle_message_subscribe_frames(broadcaster):
    conn = await _connected(broadcaster, "a")
    await broadcaster.handle_message(conn, "subscribe", {"eventTypes": ["lightning_zaps", "system_stats"]})
    await broadcaster.handle_message(conn, "unsubscribe", {"eventTypes": ["system_stats"]})
    await broadcaster.handle_message(conn, "mystery", None)
    assert broadcaster.registry.topics_of("a") == {Topic.LIGHTNING_ZAPS}


async def test_disconnect_unregisters(broadcaster):
    await _connected(broadcaster, "a", ["nostr_events"])
    broadcaster.disconnect("a")
    assert broadcaster.status()["connectedClients"] == 0
    assert await broadcaster.publish(Topic.NOSTR_EVENTS, {}) == 0

