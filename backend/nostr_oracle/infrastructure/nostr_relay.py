"""Nostr Relay Listener — subscribes to kind-1 notes and publishes signed events.

Invariants:
    - One reconnecting task per relay URL; a failing relay never affects the others
    - Only ["EVENT", sub_id, event] frames are forwarded; malformed frames are logged
      and skipped
    - publish() sends only to currently open connections, bounded by a timeout

Design Decisions:
    - `websockets` asyncio client: relays speak plain WebSocket + JSON arrays
    - Handler errors are logged, not raised: one bad note must not drop the relay socket
    - Exponential reconnect backoff capped at 60s
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable

import websockets
from websockets.exceptions import WebSocketException

from nostr_oracle.core.domain_types import TEXT_NOTE_KIND
from nostr_oracle.core.verification_types import IncomingEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[IncomingEvent], Awaitable[None]]

_SUBSCRIPTION_ID = "nostr-oracle"
_MAX_RECONNECT_DELAY = 60.0


def parse_relay_frame(raw: str | bytes) -> IncomingEvent | None:
    """Return the note carried by an EVENT frame, or None for any other frame."""
    try:
        frame = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Unparseable relay frame")
        return None
    if not isinstance(frame, list) or len(frame) < 3 or frame[0] != "EVENT":
        return None
    if not isinstance(frame[2], dict):
        return None
    try:
        return IncomingEvent.from_relay(frame[2])
    except ValueError as e:
        logger.warning(f"Skipping malformed relay event: {e}")
        return None


class RelayListener:
    """Maintains relay subscriptions and forwards incoming notes."""

    def __init__(
        self,
        urls: list[str],
        on_event: EventHandler,
        limit: int = 100,
        reconnect_delay: float = 2.0,
        send_timeout: float = 8.0,
    ):
        self.urls = urls
        self.on_event = on_event
        self.limit = limit
        self.reconnect_delay = reconnect_delay
        self.send_timeout = send_timeout
        self._connections: dict[str, object] = {}
        self._tasks: list[asyncio.Task] = []

    @property
    def connected_count(self) -> int:
        return len(self._connections)

    def start(self) -> None:
        for url in self.urls:
            self._tasks.append(asyncio.create_task(self._listen_forever(url)))

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._connections.clear()

    async def publish(self, event: dict) -> int:
        """Send a signed event to every open relay; returns relays reached."""
        frame = json.dumps(["EVENT", event])
        reached = 0
        for url, ws in list(self._connections.items()):
            try:
                await asyncio.wait_for(ws.send(frame), self.send_timeout)
                reached += 1
            except (WebSocketException, OSError, asyncio.TimeoutError) as e:
                logger.warning(f"Failed to publish to relay {url}: {e}", extra={"relay": url})
        return reached

    async def _listen_forever(self, url: str) -> None:
        delay = self.reconnect_delay
        while True:
            try:
                await self._listen(url)
                delay = self.reconnect_delay
            except (WebSocketException, OSError, asyncio.TimeoutError) as e:
                logger.warning(f"Relay {url} error: {e}", extra={"relay": url})
            finally:
                self._connections.pop(url, None)
            logger.info(f"Reconnecting to {url} in {delay:.0f}s", extra={"relay": url})
            await asyncio.sleep(delay)
            delay = min(delay * 2, _MAX_RECONNECT_DELAY)

    async def _listen(self, url: str) -> None:
        async with websockets.connect(url, open_timeout=self.send_timeout) as ws:
            self._connections[url] = ws
            logger.info(f"Connected to relay: {url}", extra={"relay": url})
            await ws.send(json.dumps([
                "REQ", _SUBSCRIPTION_ID, {"kinds": [TEXT_NOTE_KIND], "limit": self.limit},
            ]))
            async for raw in ws:
                event = parse_relay_frame(raw)
                if event is None:
                    continue
                try:
                    await self.on_event(event)
                except Exception as e:
                    logger.error(f"Event handler failed for {event.id}: {e}", exc_info=True)
