"""Messaging API router: send, conversations and read receipts."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.modules.identity.actors import Actor
from src.modules.identity.auth import get_current_actor
from src.modules.messaging.schemas import (
    ConversationResponse,
    MarkReadResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from src.modules.messaging.service import MessageService
from src.modules.presence.registry import presence_registry
from src.schemas.responses import ERROR_RESPONSES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


async def _push_new_message(receiver_id: uuid.UUID, message: dict) -> None:
    """Live push to the receiver, if online. Runs after the response is sent."""
    delivered = await presence_registry.send_to_user(
        receiver_id, {"type": "new_message", "message": message}
    )
    if delivered:
        logger.debug("Pushed message %s to user %s", message["id"], receiver_id)


@router.post("/", response_model=MessageResponse, status_code=201, responses=ERROR_RESPONSES)
async def send_message(
    body: MessageCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    message = await MessageService(db).send_message(
        sender_id=actor.user_id,
        receiver_id=body.receiver_id,
        content=body.content,
        requirement_id=body.requirement_id,
        message_type=body.message_type,
    )
    response = MessageResponse.model_validate(message)
    background_tasks.add_task(
        _push_new_message, message.receiver_id, response.model_dump(mode="json", by_alias=True)
    )
    return response


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """The caller's conversations, most recent first."""
    conversations = await MessageService(db).list_conversations(actor.user_id)
    return [
        ConversationResponse(
            conversation_id=c["conversation_id"],
            other_user_id=c["other_user_id"],
            other_user_online=presence_registry.is_online(c["other_user_id"]),
            last_message=MessageResponse.model_validate(c["last_message"]),
            total_messages=c["total_messages"],
            unread_count=c["unread_count"],
        )
        for c in conversations
    ]


@router.get(
    "/conversations/{conversation_id}", response_model=MessageListResponse, responses=ERROR_RESPONSES
)
async def get_conversation(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    items, total = await MessageService(db).get_conversation(
        actor.user_id, conversation_id, limit=limit, offset=offset
    )
    return MessageListResponse(
        items=[MessageResponse.model_validate(m) for m in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.put(
    "/conversations/{conversation_id}/read", response_model=MarkReadResponse, responses=ERROR_RESPONSES
)
async def mark_conversation_read(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    updated = await MessageService(db).mark_conversation_read(actor.user_id, conversation_id)
    return MarkReadResponse(updated=updated)


@router.put("/read/{sender_id}", response_model=MarkReadResponse)
async def mark_read_from(
    sender_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Mark every unread message from ``sender_id`` to the caller as read."""
    updated = await MessageService(db).mark_read_from(actor.user_id, sender_id)
    return MarkReadResponse(updated=updated)
