"""In-process presence index: user id -> live WebSocket connections.

Written only on connect/disconnect, read everywhere else, never persisted.
A restart empties it and clients rebuild it by reconnecting.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class PresenceRegistry:
    def __init__(self) -> None:
        self._connections: dict[uuid.UUID, set[Connection]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: uuid.UUID, connection: Connection) -> None:
        async with self._lock:
            first = user_id not in self._connections
            self._connections.setdefault(user_id, set()).add(connection)
        if first:
            logger.info("User %s is online", user_id)

    async def disconnect(self, user_id: uuid.UUID, connection: Connection) -> None:
        async with self._lock:
            connections = self._connections.get(user_id)
            if connections is None:
                return
            connections.discard(connection)
            if connections:
                return
            del self._connections[user_id]
        logger.info("User %s is offline", user_id)

    def is_online(self, user_id: uuid.UUID) -> bool:
        return user_id in self._connections

    def online_users(self) -> list[uuid.UUID]:
        return list(self._connections)

    async def send_to_user(self, user_id: uuid.UUID, message: dict) -> int:
        """Push ``message`` to every socket of the user; returns how many received it.

        Delivery is best-effort. A socket that fails to send is dropped.
        """
        async with self._lock:
            targets = list(self._connections.get(user_id, ()))

        delivered = 0
        for connection in targets:
            try:
                await connection.send_json(message)
                delivered += 1
            except (RuntimeError, OSError):
                logger.warning("Dropping dead connection for user %s", user_id, exc_info=True)
                await self.disconnect(user_id, connection)
        return delivered

    async def clear(self) -> None:
        async with self._lock:
            self._connections.clear()


presence_registry = PresenceRegistry()
