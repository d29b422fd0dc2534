from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tabletab.api.security import verify_staff_token
from tabletab.api.ws.manager import ConnectionManager, is_known_channel
from tabletab.application.errors import InvalidCredentialsError
from tabletab.application.notifications.order_notifier import ADMIN_CHANNEL

router = APIRouter()
logger = logging.getLogger(__name__)


def _error(message: str) -> dict[str, Any]:
    return {"event_type": "error", "message": message}


def _can_join_admin(token: str | None) -> bool:
    if not token:
        return False
    try:
        verify_staff_token(token)
    except InvalidCredentialsError:
        return False
    return True


async def _handle_message(
    manager: ConnectionManager,
    websocket: WebSocket,
    raw_message: str,
    token: str | None,
) -> dict[str, Any]:
    try:
        message = json.loads(raw_message)
    except json.JSONDecodeError:
        return _error("message must be a JSON object")
    if not isinstance(message, dict):
        return _error("message must be a JSON object")

    action = message.get("action")
    channel = message.get("channel")
    if action not in {"join", "leave"}:
        return _error("action must be join or leave")
    if not isinstance(channel, str) or not is_known_channel(channel):
        return _error("channel must be admin, order:<orderId> or table:<tableId>")

    if action == "leave":
        await manager.leave(websocket, channel)
        return {"event_type": "channel.left", "channel": channel}

    if channel == ADMIN_CHANNEL and not _can_join_admin(token):
        logger.warning("ws_admin_join_rejected", extra={"channel": channel})
        return _error("admin channel requires a valid staff token")

    await manager.join(websocket, channel)
    return {"event_type": "channel.joined", "channel": channel}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.ws_manager
    token = websocket.query_params.get("token")
    await manager.connect(websocket)
    try:
        while True:
            raw_message = await websocket.receive_text()
            reply = await _handle_message(manager, websocket, raw_message, token)
            await websocket.send_text(json.dumps(reply))
    except WebSocketDisconnect:
        await manager.disconnect(websocket)
    except Exception:
        logger.exception("ws_connection_error")
        await manager.disconnect(websocket)
