"""Tests for the in-process presence registry and its socket endpoint."""

import time
import uuid
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from starlette.websockets import WebSocketDisconnect

from src.app import app
from src.config import settings
from src.modules.presence.registry import PresenceRegistry, presence_registry


class FakeConnection:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict] = []

    async def send_json(self, data, mode: str = "text") -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest.fixture
def registry():
    return PresenceRegistry()


class TestPresenceRegistry:
    @pytest.mark.asyncio
    async def test_user_online_while_any_socket_open(self, registry):
        user_id = uuid.uuid4()
        phone, laptop = FakeConnection(), FakeConnection()

        await registry.connect(user_id, phone)
        await registry.connect(user_id, laptop)
        await registry.disconnect(user_id, phone)
        assert registry.is_online(user_id)

        await registry.disconnect(user_id, laptop)
        assert not registry.is_online(user_id)
        assert registry.online_users() == []

    @pytest.mark.asyncio
    async def test_disconnect_unknown_user_is_harmless(self, registry):
        await registry.disconnect(uuid.uuid4(), FakeConnection())
        assert registry.online_users() == []

    @pytest.mark.asyncio
    async def test_send_reaches_every_socket(self, registry):
        user_id = uuid.uuid4()
        sockets = [FakeConnection(), FakeConnection()]
        for socket in sockets:
            await registry.connect(user_id, socket)

        delivered = await registry.send_to_user(user_id, {"type": "quote_submitted"})

        assert delivered == 2
        assert all(s.sent == [{"type": "quote_submitted"}] for s in sockets)

    @pytest.mark.asyncio
    async def test_send_to_offline_user_delivers_nothing(self, registry):
        assert await registry.send_to_user(uuid.uuid4(), {"type": "ping"}) == 0

    @pytest.mark.asyncio
    async def test_dead_socket_is_dropped(self, registry):
        user_id = uuid.uuid4()
        live, dead = FakeConnection(), FakeConnection(fail=True)
        await registry.connect(user_id, live)
        await registry.connect(user_id, dead)

        assert await registry.send_to_user(user_id, {"type": "ping"}) == 1
        await registry.disconnect(user_id, live)
        assert not registry.is_online(user_id)

    @pytest.mark.asyncio
    async def test_clear_empties_registry(self, registry):
        await registry.connect(uuid.uuid4(), FakeConnection())
        await registry.clear()
        assert registry.online_users() == []


def _token(user_id: uuid.UUID) -> str:
    claims = {
        "sub": str(user_id),
        "email": "h@home.in",
        "role": "homeowner",
        "exp": datetime.now(UTC) + timedelta(minutes=5),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


class TestPresenceSocket:
    def test_socket_marks_user_online_until_closed(self):
        user_id = uuid.uuid4()
        client = TestClient(app)

        with client.websocket_connect(f"/api/v1/presence/ws?token={_token(user_id)}") as websocket:
            websocket.send_text("ping")
            # Registration runs on the server thread right after accept
            for _ in range(50):
                if presence_registry.is_online(user_id):
                    break
                time.sleep(0.01)
            assert presence_registry.is_online(user_id)

        assert not presence_registry.is_online(user_id)

    def test_bad_token_is_refused(self):
        client = TestClient(app)
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/api/v1/presence/ws?token=not-a-jwt") as websocket:
                websocket.receive_text()
        assert exc_info.value.code == 1008
