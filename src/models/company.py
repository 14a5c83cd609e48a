from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Company(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A construction/design company; bids through its admin user."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    admin_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    logo: Mapped[str | None] = mapped_column(String(500))
    contact_email: Mapped[str | None] = mapped_column(String(255))
    contact_phone: Mapped[str | None] = mapped_column(String(50))
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=0)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_companies_admin_user_id", "admin_user_id"),
    )
