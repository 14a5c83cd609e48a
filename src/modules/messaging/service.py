"""Direct messaging between marketplace users.

Messages are stored first and pushed live second; a receiver who is offline
sees them through the conversation listing on the next visit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ForbiddenException, NotFoundException, ValidationException
from src.models.enums import MessageType
from src.models.message import Message
from src.models.requirement import Requirement

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1000


def conversation_key(user_a: uuid.UUID, user_b: uuid.UUID) -> str:
    """Order-independent id shared by both participants."""
    low, high = sorted((str(user_a), str(user_b)))
    return f"{low}_{high}"


def is_participant(user_id: uuid.UUID, conversation_id: str) -> bool:
    return str(user_id) in conversation_id.split("_")


class MessageService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def send_message(
        self,
        sender_id: uuid.UUID,
        receiver_id: uuid.UUID,
        content: str,
        requirement_id: uuid.UUID | None = None,
        message_type: MessageType = MessageType.TEXT,
    ) -> Message:
        content = content.strip()
        if not content:
            raise ValidationException("Message content is required")
        if len(content) > MAX_CONTENT_LENGTH:
            raise ValidationException(
                f"Message content must be at most {MAX_CONTENT_LENGTH} characters"
            )
        if sender_id == receiver_id:
            raise ValidationException("Cannot send a message to yourself")
        if requirement_id is not None and await self.db.get(Requirement, requirement_id) is None:
            raise NotFoundException(f"Requirement {requirement_id} not found")

        message = Message(
            conversation_id=conversation_key(sender_id, receiver_id),
            sender_id=sender_id,
            receiver_id=receiver_id,
            requirement_id=requirement_id,
            content=content,
            message_type=message_type,
            is_read=False,
        )
        self.db.add(message)
        await self.db.flush()
        logger.info(
            "Message %s sent from %s to %s in %s",
            message.id, sender_id, receiver_id, message.conversation_id,
        )
        return message

    async def get_conversation(
        self,
        user_id: uuid.UUID,
        conversation_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Message], int]:
        """Return (messages oldest first, total) for a conversation the user takes part in."""
        if not is_participant(user_id, conversation_id):
            raise ForbiddenException("You are not part of this conversation")

        base = select(Message).where(Message.conversation_id == conversation_id)
        total_result = await self.db.execute(select(func.count()).select_from(base.subquery()))
        result = await self.db.execute(
            base.order_by(Message.created_at, Message.id).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total_result.scalar() or 0

    async def list_conversations(self, user_id: uuid.UUID) -> list[dict]:
        """One entry per conversation: its last message, size and unread count for ``user_id``.

        Newest conversation first.
        """
        mine = or_(Message.sender_id == user_id, Message.receiver_id == user_id)

        ranked = (
            select(
                Message.id,
                func.row_number()
                .over(
                    partition_by=Message.conversation_id,
                    order_by=[Message.created_at.desc(), Message.id.desc()],
                )
                .label("position"),
            )
            .where(mine)
            .subquery()
        )
        stats = (
            select(
                Message.conversation_id,
                func.count().label("total_messages"),
                func.sum(
                    case(
                        (and_(Message.receiver_id == user_id, Message.is_read.is_(False)), 1),
                        else_=0,
                    )
                ).label("unread_count"),
            )
            .where(mine)
            .group_by(Message.conversation_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Message, stats.c.total_messages, stats.c.unread_count)
            .join(ranked, ranked.c.id == Message.id)
            .join(stats, stats.c.conversation_id == Message.conversation_id)
            .where(ranked.c.position == 1)
            .order_by(Message.created_at.desc())
        )
        return [
            {
                "conversation_id": last.conversation_id,
                "other_user_id": last.receiver_id if last.sender_id == user_id else last.sender_id,
                "last_message": last,
                "total_messages": total,
                "unread_count": unread or 0,
            }
            for last, total, unread in result.all()
        ]

    async def mark_conversation_read(self, user_id: uuid.UUID, conversation_id: str) -> int:
        """Mark messages received in the conversation as read; returns the count."""
        if not is_participant(user_id, conversation_id):
            raise ForbiddenException("You are not part of this conversation")
        return await self._mark_read(Message.conversation_id == conversation_id, user_id)

    async def mark_read_from(self, user_id: uuid.UUID, sender_id: uuid.UUID) -> int:
        """Mark every unread message from ``sender_id`` to the user as read."""
        return await self._mark_read(Message.sender_id == sender_id, user_id)

    async def _mark_read(self, scope, receiver_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(Message)
            .where(scope, Message.receiver_id == receiver_id, Message.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount
