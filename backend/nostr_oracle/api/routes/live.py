"""Live Feed — WebSocket endpoint bridging clients to the Broadcaster.

Invariants:
    - Frames are JSON objects {"event": name, "data": {...}} in both directions
    - Malformed client frames are ignored, never close the socket
    - Disconnect (clean or not) always unregisters the client

Design Decisions:
    - WebSocketConnection adapts Starlette's WebSocket to the LiveConnection protocol
"""

import json
import logging
import uuid

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from nostr_oracle.api.dependencies import get_ws_oracle
from nostr_oracle.services.context import OracleContext

logger = logging.getLogger(__name__)
router = APIRouter(tags=["live"])


class WebSocketConnection:
    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.client_id = uuid.uuid4().hex

    async def send(self, event: str, payload: dict) -> None:
        await self.websocket.send_json({"event": event, "data": payload})


@router.websocket("/ws")
async def live_feed(websocket: WebSocket, oracle: OracleContext = Depends(get_ws_oracle)):
    await websocket.accept()
    conn = WebSocketConnection(websocket)
    broadcaster = oracle.broadcaster
    await broadcaster.connect(conn)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                logger.debug(f"Ignoring non-JSON frame from {conn.client_id}")
                continue
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                continue
            await broadcaster.handle_message(conn, frame["event"], frame.get("data") or {})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(conn.client_id)
