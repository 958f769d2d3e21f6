"""Broadcaster — topic-based fan-out of pipeline activity to live connections.

Invariants:
    - A topic message reaches only connections subscribed to that topic
    - notify() is the only message delivered to every connection
    - subscribe/unsubscribe are idempotent; unknown topic names are ignored
    - A connection whose send fails (or times out) is disconnected and never
      delays delivery to the others
    - Frames are (event name, payload); payload = {type, data, timestamp}

Design Decisions:
    - Transport-agnostic: LiveConnection is any object with client_id + async send(),
      the WebSocket adapter lives in api/routes/live.py
    - Sends run concurrently under a per-connection timeout (asyncio.gather)
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Protocol

from nostr_oracle.core.domain_types import LiveEvent, TOPIC_EVENTS, Topic, parse_topics
from nostr_oracle.core.envelope import RAW_EVENT_PREVIEW_CHARS, build_envelope, preview_event
from nostr_oracle.core.verification_types import (
    IncomingEvent, StatsSnapshot, VerificationResult,
)

logger = logging.getLogger(__name__)


class LiveConnection(Protocol):
    client_id: str

    async def send(self, event: str, payload: dict) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TopicRegistry:
    """connection → subscribed topics."""

    def __init__(self):
        self._subscriptions: dict[str, set[Topic]] = {}
        self._connections: dict[str, LiveConnection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._connections

    def add(self, conn: LiveConnection) -> None:
        self._connections[conn.client_id] = conn
        self._subscriptions.setdefault(conn.client_id, set())

    def remove(self, client_id: str) -> bool:
        self._subscriptions.pop(client_id, None)
        return self._connections.pop(client_id, None) is not None

    def subscribe(self, client_id: str, topics: set[Topic]) -> None:
        if client_id in self._subscriptions:
            self._subscriptions[client_id] |= topics

    def unsubscribe(self, client_id: str, topics: set[Topic]) -> None:
        if client_id in self._subscriptions:
            self._subscriptions[client_id] -= topics

    def topics_of(self, client_id: str) -> set[Topic]:
        return set(self._subscriptions.get(client_id, ()))

    def subscribers(self, topic: Topic) -> list[LiveConnection]:
        return [
            self._connections[cid]
            for cid, topics in self._subscriptions.items()
            if topic in topics
        ]

    def all(self) -> list[LiveConnection]:
        return list(self._connections.values())

    def topic_counts(self) -> dict[str, int]:
        return {t.value: len(self.subscribers(t)) for t in Topic}


class Broadcaster:
    """Delivers topic messages and notifications to live connections."""

    def __init__(
        self,
        send_timeout: float = 8.0,
        preview_chars: int = RAW_EVENT_PREVIEW_CHARS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.registry = TopicRegistry()
        self.send_timeout = send_timeout
        self.preview_chars = preview_chars
        self.clock = clock

    # ─── Connection lifecycle ────────────────────────────────────

    async def connect(self, conn: LiveConnection) -> None:
        self.registry.add(conn)
        logger.info(f"Live client connected: {conn.client_id}")
        await self._deliver([conn], LiveEvent.CONNECTION_ESTABLISHED.value, {
            "message": "Connected to NostrOracle live feed",
            "clientId": conn.client_id,
            "timestamp": self.clock().isoformat(),
        })

    def disconnect(self, client_id: str) -> None:
        if self.registry.remove(client_id):
            logger.info(f"Live client disconnected: {client_id}")

    def subscribe(self, client_id: str, names: list[str] | None) -> set[Topic]:
        topics = parse_topics(names)
        self.registry.subscribe(client_id, topics)
        logger.debug(f"{client_id} subscribed to {sorted(t.value for t in topics)}")
        return self.registry.topics_of(client_id)

    def unsubscribe(self, client_id: str, names: list[str] | None) -> set[Topic]:
        self.registry.unsubscribe(client_id, parse_topics(names))
        return self.registry.topics_of(client_id)

    async def handle_message(self, conn: LiveConnection, event: str, data) -> None:
        """Dispatch one client → server frame."""
        names = data.get("eventTypes") if isinstance(data, dict) else None
        if event == "subscribe":
            self.subscribe(conn.client_id, names)
        elif event == "unsubscribe":
            self.unsubscribe(conn.client_id, names)
        elif event == "ping":
            await self._deliver([conn], LiveEvent.PONG.value, {
                "timestamp": int(time.time() * 1000),
            })
        else:
            logger.debug(f"Ignoring unknown live event {event!r} from {conn.client_id}")

    # ─── Fan-out ─────────────────────────────────────────────────

    async def publish(self, topic: Topic, data: dict) -> int:
        """Send {type, data, timestamp} to subscribers of topic. Returns deliveries."""
        event = TOPIC_EVENTS[topic].value
        targets = self.registry.subscribers(topic)
        if not targets:
            return 0
        delivered = await self._deliver(
            targets, event, build_envelope(event, data, self.clock()),
        )
        logger.debug(
            f"Published {event} to {delivered} clients",
            extra={"topic": topic.value, "delivered": delivered},
        )
        return delivered

    async def publish_verification_result(self, result: VerificationResult) -> int:
        return await self.publish(Topic.VERIFICATION_RESULTS, result.to_dict())

    async def publish_nostr_event(self, event: IncomingEvent) -> int:
        return await self.publish(Topic.NOSTR_EVENTS, preview_event(event, self.preview_chars))

    async def publish_zap(self, zap: dict) -> int:
        return await self.publish(Topic.LIGHTNING_ZAPS, zap)

    async def publish_stats(self, stats: StatsSnapshot) -> int:
        return await self.publish(Topic.SYSTEM_STATS, stats.to_dict())

    async def notify(self, message: str, level: str = "info") -> int:
        event = LiveEvent.NOTIFICATION.value
        now = self.clock()
        data = {
            "message": message,
            "type": level,
            "id": f"notif_{int(now.timestamp() * 1000)}",
        }
        return await self._deliver(self.registry.all(), event, build_envelope(event, data, now))

    def status(self) -> dict:
        return {
            "connectedClients": len(self.registry),
            "topics": self.registry.topic_counts(),
        }

    async def _deliver(self, targets: list[LiveConnection], event: str, payload: dict) -> int:
        outcomes = await asyncio.gather(
            *(asyncio.wait_for(c.send(event, payload), self.send_timeout) for c in targets),
            return_exceptions=True,
        )
        delivered = 0
        for conn, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Dropping live client {conn.client_id}: {outcome!r}")
                self.disconnect(conn.client_id)
            else:
                delivered += 1
        return delivered
