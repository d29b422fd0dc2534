from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tabletab.api.main import app
from tabletab.api.ws.manager import ConnectionManager, is_known_channel
from tabletab.infrastructure.messaging.redis_event_listener import channel_from_bus

STAFF_SECRET = "unit-test-staff-secret-0123456789abcdef"


class FakeWebSocket:
    def __init__(self, fail_on_send: bool = False) -> None:
        self.accepted = False
        self.sent: list[str] = []
        self.fail_on_send = fail_on_send

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail_on_send:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest.fixture
def ws_client(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("ADMIN_JWT_SECRET", STAFF_SECRET)
    monkeypatch.delenv("ADMIN_JWT_AUDIENCE", raising=False)
    with TestClient(app) as client:
        yield client


@pytest.mark.parametrize(
    ("channel", "expected"),
    [
        ("admin", True),
        ("order:ord_1", True),
        ("table:4", True),
        ("order:", False),
        ("table: ", False),
        ("kitchen", False),
        ("", False),
    ],
)
def test_known_channels(channel: str, expected: bool) -> None:
    assert is_known_channel(channel) is expected


def test_channel_from_bus() -> None:
    assert channel_from_bus("events:order:ord_1") == "order:ord_1"
    assert channel_from_bus("events:") is None
    assert channel_from_bus("other:admin") is None


def test_broadcast_reaches_only_channel_members() -> None:
    async def scenario() -> tuple[FakeWebSocket, FakeWebSocket]:
        manager = ConnectionManager()
        admin_socket, table_socket = FakeWebSocket(), FakeWebSocket()
        await manager.connect(admin_socket)
        await manager.connect(table_socket)
        await manager.join(admin_socket, "admin")
        await manager.join(table_socket, "table:4")
        await manager.join(table_socket, "order:ord_1")

        await manager.broadcast("admin", "a")
        await manager.broadcast("table:4", "t")
        await manager.broadcast("order:ord_1", "o")
        await manager.broadcast("table:5", "nobody")
        return admin_socket, table_socket

    admin_socket, table_socket = asyncio.run(scenario())

    assert admin_socket.accepted and table_socket.accepted
    assert admin_socket.sent == ["a"]
    assert table_socket.sent == ["t", "o"]


def test_leave_and_disconnect_remove_memberships() -> None:
    async def scenario() -> tuple[ConnectionManager, FakeWebSocket]:
        manager = ConnectionManager()
        websocket = FakeWebSocket()
        await manager.connect(websocket)
        await manager.join(websocket, "order:ord_1")
        await manager.join(websocket, "table:4")
        await manager.leave(websocket, "order:ord_1")
        await manager.broadcast("order:ord_1", "after-leave")
        await manager.broadcast("table:4", "still-joined")
        await manager.disconnect(websocket)
        await manager.broadcast("table:4", "after-disconnect")
        return manager, websocket

    manager, websocket = asyncio.run(scenario())

    assert websocket.sent == ["still-joined"]
    assert manager.member_count("order:ord_1") == 0
    assert manager.member_count("table:4") == 0


def test_broadcast_drops_sockets_that_fail() -> None:
    async def scenario() -> tuple[ConnectionManager, FakeWebSocket]:
        manager = ConnectionManager()
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail_on_send=True)
        for websocket in (healthy, broken):
            await manager.connect(websocket)
            await manager.join(websocket, "admin")
        await manager.broadcast("admin", "first")
        return manager, healthy

    manager, healthy = asyncio.run(scenario())

    assert healthy.sent == ["first"]
    assert manager.member_count("admin") == 1


def test_websocket_join_leave_protocol(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as websocket:
        websocket.send_text(json.dumps({"action": "join", "channel": "order:ord_1"}))
        assert websocket.receive_json() == {"event_type": "channel.joined", "channel": "order:ord_1"}

        websocket.send_text(json.dumps({"action": "leave", "channel": "order:ord_1"}))
        assert websocket.receive_json() == {"event_type": "channel.left", "channel": "order:ord_1"}

        websocket.send_text("not json")
        assert websocket.receive_json()["event_type"] == "error"

        websocket.send_text(json.dumps({"action": "shout", "channel": "admin"}))
        assert websocket.receive_json()["message"] == "action must be join or leave"

        websocket.send_text(json.dumps({"action": "join", "channel": "kitchen"}))
        assert websocket.receive_json()["event_type"] == "error"


def test_admin_channel_requires_staff_token(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as websocket:
        websocket.send_text(json.dumps({"action": "join", "channel": "admin"}))
        reply = websocket.receive_json()
        assert reply["event_type"] == "error"
        assert "staff token" in reply["message"]

    token = jwt.encode({"sub": "staff-1"}, STAFF_SECRET, algorithm="HS256")
    with ws_client.websocket_connect(f"/ws?token={token}") as websocket:
        websocket.send_text(json.dumps({"action": "join", "channel": "admin"}))
        assert websocket.receive_json() == {"event_type": "channel.joined", "channel": "admin"}


def test_joined_socket_receives_channel_broadcasts(ws_client: TestClient) -> None:
    manager: ConnectionManager = app.state.ws_manager
    event = json.dumps({"event_type": "order:update", "channel": "table:4"})

    with ws_client.websocket_connect("/ws") as websocket:
        websocket.send_text(json.dumps({"action": "join", "channel": "table:4"}))
        websocket.receive_json()

        ws_client.portal.call(manager.broadcast, "table:9", "ignored")
        ws_client.portal.call(manager.broadcast, "table:4", event)

        assert websocket.receive_text() == event
