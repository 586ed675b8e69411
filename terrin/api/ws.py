"""In-process registry of open WebSocket connections, keyed by user."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from terrin.common.logging import get_logger

logger = get_logger("ws.manager")


def _envelope(event: str, data: dict) -> str:
    return json.dumps(
        {"event": event, "data": data, "timestamp": datetime.now(timezone.utc).isoformat()},
        default=str,
    )


class ConnectionManager:
    """A user may hold several sockets (one per open tab); each gets every event."""

    def __init__(self) -> None:
        self.active: dict[str, set[WebSocket]] = {}

    async def connect(self, user_id: str, ws: WebSocket) -> None:
        await ws.accept()
        sockets = self.active.setdefault(user_id, set())
        sockets.add(ws)
        logger.info("WS connected: user=%s (%d open)", user_id, len(sockets))

    def disconnect(self, user_id: str, ws: WebSocket) -> None:
        sockets = self.active.get(user_id)
        if sockets is None:
            return
        sockets.discard(ws)
        if not sockets:
            self.active.pop(user_id, None)
        logger.info("WS disconnected: user=%s", user_id)

    async def send_to_user(self, user_id: str, event: str, data: dict) -> None:
        sockets = self.active.get(user_id)
        if not sockets:
            return
        message = _envelope(event, data)
        for ws in list(sockets):
            if ws.client_state != WebSocketState.CONNECTED:
                self.disconnect(user_id, ws)
                continue
            try:
                await ws.send_text(message)
            except Exception:
                logger.warning("Dropping broken socket for user=%s", user_id)
                self.disconnect(user_id, ws)

    @property
    def connected_users(self) -> int:
        return len(self.active)


manager = ConnectionManager()
