from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin, str_enum
from src.models.enums import MessageType


class Message(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A direct message between two users.

    ``conversation_id`` is derived from the sorted pair of user ids, so both
    sides of a conversation share it.
    """

    __tablename__ = "messages"

    conversation_id: Mapped[str] = mapped_column(String(100), nullable=False)
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    receiver_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    requirement_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("requirements.id", ondelete="SET NULL")
    )
    content: Mapped[str] = mapped_column(String(1000), nullable=False)
    message_type: Mapped[MessageType] = mapped_column(
        str_enum(MessageType, "messagetype"), nullable=False, default=MessageType.TEXT
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
        Index("ix_messages_receiver_read", "receiver_id", "is_read"),
        Index("ix_messages_sender", "sender_id"),
    )

    def __repr__(self) -> str:
        return f"<Message id={self.id} conversation={self.conversation_id}>"
