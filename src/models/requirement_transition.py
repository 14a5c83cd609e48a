from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, str_enum
from src.models.enums import RequirementStatus

if TYPE_CHECKING:
    from src.models.requirement import Requirement


class RequirementTransition(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Audit record of one requirement status change."""

    __tablename__ = "requirement_transitions"

    requirement_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requirements.id", ondelete="CASCADE"), nullable=False
    )
    from_status: Mapped[RequirementStatus | None] = mapped_column(
        str_enum(RequirementStatus, "requirementstatus")
    )
    to_status: Mapped[RequirementStatus] = mapped_column(
        str_enum(RequirementStatus, "requirementstatus"), nullable=False
    )
    triggered_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)

    requirement: Mapped[Requirement] = relationship(
        "Requirement", back_populates="transitions", lazy="noload"
    )

    __table_args__ = (
        Index("ix_requirement_transitions_requirement_id", "requirement_id"),
    )
