"""WebSocket endpoint for real-time conversation events."""

from __future__ import annotations

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from terrin.api.deps import authenticate_token
from terrin.api.ws import manager
from terrin.common.exceptions import TerrinException
from terrin.common.logging import get_logger
from terrin.db.session import async_session_factory

router = APIRouter(tags=["WebSocket"])

logger = get_logger("ws")


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    """Authenticate via ``token`` query param, then stream events."""
    token = ws.query_params.get("token", "")
    try:
        async with async_session_factory() as session:
            user = await authenticate_token(token, session)
            await session.commit()
            user_id = str(user.id)
    except TerrinException:
        await ws.close(code=4001, reason="Invalid token")
        return

    await manager.connect(user_id, ws)
    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await ws.send_json({"type": "pong"})
    except WebSocketDisconnect:
        manager.disconnect(user_id, ws)
