from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, UTCDateTime, utcnow

if TYPE_CHECKING:
    from src.models.requirement import Requirement


class RequirementQuote(Base):
    """Membership of a quote in its requirement's ``quotes`` list.

    The autoincrement id preserves submission order. Withdrawal deletes the
    row; the quote itself keeps its ``requirement_id``.
    """

    __tablename__ = "requirement_quotes"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    requirement_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requirements.id", ondelete="CASCADE"), nullable=False
    )
    quote_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False
    )
    added_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    requirement: Mapped[Requirement] = relationship(
        "Requirement", back_populates="quote_entries", lazy="raise"
    )

    __table_args__ = (
        UniqueConstraint("requirement_id", "quote_id", name="uq_requirement_quotes_pair"),
    )
