from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

from tabletab.application.notifications.order_notifier import ADMIN_CHANNEL

logger = logging.getLogger(__name__)

SCOPED_CHANNEL_PREFIXES = ("order:", "table:")


def is_known_channel(channel: str) -> bool:
    if channel == ADMIN_CHANNEL:
        return True
    for prefix in SCOPED_CHANNEL_PREFIXES:
        if channel.startswith(prefix) and channel[len(prefix) :].strip():
            return True
    return False


class ConnectionManager:
    """Process-local channel membership for connected sockets."""

    def __init__(self) -> None:
        self._channels: dict[str, set[WebSocket]] = defaultdict(set)
        self._memberships: dict[WebSocket, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("ws_client_connected")

    async def join(self, websocket: WebSocket, channel: str) -> None:
        async with self._lock:
            self._channels[channel].add(websocket)
            self._memberships[websocket].add(channel)
        logger.info("ws_channel_joined", extra={"channel": channel})

    async def leave(self, websocket: WebSocket, channel: str) -> None:
        async with self._lock:
            self._discard(websocket, channel)
            memberships = self._memberships.get(websocket)
            if memberships is not None:
                memberships.discard(channel)
                if not memberships:
                    self._memberships.pop(websocket, None)
        logger.info("ws_channel_left", extra={"channel": channel})

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            channels = self._memberships.pop(websocket, set())
            for channel in channels:
                self._discard(websocket, channel)
        logger.info("ws_client_disconnected", extra={"channel": ",".join(sorted(channels))})

    def _discard(self, websocket: WebSocket, channel: str) -> None:
        sockets = self._channels.get(channel)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            self._channels.pop(channel, None)

    def member_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    async def broadcast(self, channel: str, message_json_str: str) -> None:
        async with self._lock:
            targets = list(self._channels.get(channel, set()))

        stale: list[WebSocket] = []
        for websocket in targets:
            try:
                await websocket.send_text(message_json_str)
            except Exception:
                stale.append(websocket)

        for websocket in stale:
            await self.disconnect(websocket)
