"""Presence API: live socket registration and online lookups."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from src.exceptions import AppException
from src.modules.identity.actors import Actor
from src.modules.identity.auth import get_current_actor, user_from_token
from src.modules.presence.registry import presence_registry
from src.schemas.responses import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/presence", tags=["presence"])


class PresenceResponse(CamelModel):
    user_id: uuid.UUID
    online: bool


class OnlineUsersResponse(CamelModel):
    user_ids: list[uuid.UUID]
    count: int


@router.websocket("/ws")
async def presence_socket(websocket: WebSocket, token: str = Query(...)):
    """Register the caller as online for the lifetime of the socket."""
    try:
        user = user_from_token(token)
    except AppException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await presence_registry.connect(user.id, websocket)
    try:
        while True:
            # Inbound frames are keep-alives only
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await presence_registry.disconnect(user.id, websocket)


@router.get("/online", response_model=OnlineUsersResponse)
async def list_online(actor: Actor = Depends(get_current_actor)):
    user_ids = presence_registry.online_users()
    return OnlineUsersResponse(user_ids=user_ids, count=len(user_ids))


@router.get("/{user_id}", response_model=PresenceResponse)
async def get_presence(user_id: uuid.UUID, actor: Actor = Depends(get_current_actor)):
    return PresenceResponse(user_id=user_id, online=presence_registry.is_online(user_id))
