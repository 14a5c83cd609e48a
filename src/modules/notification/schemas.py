"""Pydantic v2 schemas for notification endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from src.models.enums import NotificationPriority, NotificationType
from src.schemas.responses import CamelModel


class NotificationResponse(CamelModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    related_id: uuid.UUID | None = None
    related_model: str | None = None
    priority: NotificationPriority
    is_read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    items: list[NotificationResponse]
    total: int
    unread_count: int
    limit: int
    offset: int


class MarkAllReadResponse(CamelModel):
    updated: int
