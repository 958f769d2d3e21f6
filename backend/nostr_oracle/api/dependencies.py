"""Route dependencies — access to the app-wide OracleContext."""

from fastapi import Request, WebSocket

from nostr_oracle.services.context import OracleContext


def get_oracle(request: Request) -> OracleContext:
    return request.app.state.oracle


def get_ws_oracle(websocket: WebSocket) -> OracleContext:
    return websocket.app.state.oracle
