from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Professional(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An independent professional; may only bid once verified."""

    __tablename__ = "professionals"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    logo: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(50))
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=0)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_professionals_user_id", "user_id"),
        Index("ix_professionals_is_verified", "is_verified"),
    )
