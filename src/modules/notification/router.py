"""Notification API router: the caller's own inbox."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.modules.identity.actors import Actor
from src.modules.identity.auth import get_current_actor
from src.modules.notification.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from src.modules.notification.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    svc = NotificationService(db)
    items, total, unread_count = await svc.list_notifications(
        recipient_id=actor.user_id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        total=total,
        unread_count=unread_count,
        limit=limit,
        offset=offset,
    )


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Mark every unread notification of the caller as read."""
    updated = await NotificationService(db).mark_all_read(actor.user_id)
    return MarkAllReadResponse(updated=updated)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_read(notification_id, actor.user_id)
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).delete(notification_id, actor.user_id)
