"""Pydantic v2 schemas for messaging endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from src.models.enums import MessageType
from src.schemas.responses import CamelModel


class MessageCreate(CamelModel):
    receiver_id: uuid.UUID
    content: str = Field(..., min_length=1, max_length=1000)
    requirement_id: uuid.UUID | None = None
    message_type: MessageType = MessageType.TEXT


class MessageResponse(CamelModel):
    id: uuid.UUID
    conversation_id: str
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    requirement_id: uuid.UUID | None = None
    content: str
    message_type: MessageType
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class MessageListResponse(CamelModel):
    items: list[MessageResponse]
    total: int
    limit: int
    offset: int


class ConversationResponse(CamelModel):
    conversation_id: str
    other_user_id: uuid.UUID
    other_user_online: bool
    last_message: MessageResponse
    total_messages: int
    unread_count: int


class MarkReadResponse(CamelModel):
    updated: int
