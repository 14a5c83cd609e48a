from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import (
    Base,
    JSONType,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    str_enum,
)
from src.models.enums import (
    BudgetRange,
    BuildingType,
    ContactPreference,
    RequirementPriority,
    RequirementStatus,
    ServiceType,
)

if TYPE_CHECKING:
    from src.models.requirement_quote import RequirementQuote
    from src.models.requirement_transition import RequirementTransition


class Requirement(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "requirements"

    # Identity of the homeowner comes from the external auth service
    homeowner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    service_type: Mapped[ServiceType] = mapped_column(
        str_enum(ServiceType, "servicetype"), nullable=False, default=ServiceType.GENERAL
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False)
    design_preferences: Mapped[str | None] = mapped_column(String(1000))
    budget: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    budget_range: Mapped[BudgetRange | None] = mapped_column(
        str_enum(BudgetRange, "budgetrange")
    )
    timeline_start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    timeline_end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    building_type: Mapped[BuildingType] = mapped_column(
        str_enum(BuildingType, "buildingtype"), nullable=False
    )
    size: Mapped[int | None] = mapped_column(Integer)
    bedrooms: Mapped[int | None] = mapped_column(Integer)
    bathrooms: Mapped[int | None] = mapped_column(Integer)
    features: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    attachments: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    status: Mapped[RequirementStatus] = mapped_column(
        str_enum(RequirementStatus, "requirementstatus"),
        nullable=False,
        default=RequirementStatus.OPEN,
    )
    # No FK: quotes and requirements reference each other, the link is a lookup
    selected_quote_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[RequirementPriority] = mapped_column(
        str_enum(RequirementPriority, "requirementpriority"),
        nullable=False,
        default=RequirementPriority.MEDIUM,
    )
    request_multiple_quotes: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    contact_preference: Mapped[ContactPreference] = mapped_column(
        str_enum(ContactPreference, "contactpreference"),
        nullable=False,
        default=ContactPreference.EMAIL,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships (lazy="raise"; load explicitly with selectinload)
    quote_entries: Mapped[list[RequirementQuote]] = relationship(
        "RequirementQuote",
        back_populates="requirement",
        lazy="raise",
        order_by="RequirementQuote.id",
        cascade="all, delete-orphan",
    )
    transitions: Mapped[list[RequirementTransition]] = relationship(
        "RequirementTransition",
        back_populates="requirement",
        lazy="raise",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("budget >= 0", name="ck_requirements_budget_non_negative"),
        CheckConstraint(
            "timeline_end_date >= timeline_start_date",
            name="ck_requirements_timeline_ordered",
        ),
        Index("ix_requirements_homeowner_status", "homeowner_id", "status", "created_at"),
        Index("ix_requirements_status_active", "status", "is_active", "created_at"),
        Index("ix_requirements_building_location", "building_type", "location"),
        Index("ix_requirements_budget", "budget", "budget_range"),
    )

    @property
    def quote_ids(self) -> list[uuid.UUID]:
        """Quote ids in submission order."""
        return [entry.quote_id for entry in self.quote_entries]

    @property
    def timeline(self) -> dict:
        return {"start_date": self.timeline_start_date, "end_date": self.timeline_end_date}

    @property
    def timeline_duration_days(self) -> int:
        delta = abs(self.timeline_end_date - self.timeline_start_date)
        return delta.days + (1 if delta.seconds or delta.microseconds else 0)
