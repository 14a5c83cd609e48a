from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
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
    utcnow,
)
from src.models.enums import BidderType, QuoteStatus

if TYPE_CHECKING:
    from src.models.company import Company
    from src.models.professional import Professional
    from src.models.requirement import Requirement

BREAKDOWN_COMPONENTS = (
    "materials",
    "labor",
    "equipment",
    "permits",
    "overhead",
    "profit",
    "other",
)


class Quote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "quotes"

    requirement_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requirements.id", ondelete="CASCADE"), nullable=False
    )
    # Exactly one of company_id / professional_id identifies the bidder
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE")
    )
    professional_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("professionals.id", ondelete="CASCADE")
    )
    design_proposal: Mapped[str] = mapped_column(String(2000), nullable=False)
    estimated_budget: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    budget_breakdown: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    timeline_start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    timeline_end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    milestones: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    additional_notes: Mapped[str | None] = mapped_column(String(1000))
    attachments: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    design_images: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    specifications: Mapped[dict | None] = mapped_column(JSONType)
    terms: Mapped[dict | None] = mapped_column(JSONType)
    status: Mapped[QuoteStatus] = mapped_column(
        str_enum(QuoteStatus, "quotestatus"), nullable=False, default=QuoteStatus.DRAFT
    )
    valid_until: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    submitted_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    withdrawn_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    response_message: Mapped[str | None] = mapped_column(Text)
    rating: Mapped[int | None] = mapped_column(Integer)
    feedback: Mapped[str | None] = mapped_column(Text)

    # Relationships
    requirement: Mapped[Requirement] = relationship("Requirement", lazy="noload")
    company: Mapped[Company | None] = relationship("Company", lazy="noload")
    professional: Mapped[Professional | None] = relationship("Professional", lazy="noload")

    __table_args__ = (
        # One quote per bidder per requirement, whatever its status
        UniqueConstraint("requirement_id", "company_id", name="uq_quotes_requirement_company"),
        UniqueConstraint(
            "requirement_id", "professional_id", name="uq_quotes_requirement_professional"
        ),
        CheckConstraint(
            "(company_id IS NULL) <> (professional_id IS NULL)",
            name="ck_quotes_single_bidder",
        ),
        CheckConstraint(
            "estimated_budget >= 0", name="ck_quotes_estimated_budget_non_negative"
        ),
        CheckConstraint(
            "timeline_end_date >= timeline_start_date", name="ck_quotes_timeline_ordered"
        ),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_quotes_rating_range"
        ),
        Index("ix_quotes_company_status", "company_id", "status", "created_at"),
        Index("ix_quotes_professional_status", "professional_id", "status", "created_at"),
        Index("ix_quotes_requirement_status_budget", "requirement_id", "status", "estimated_budget"),
        Index("ix_quotes_status_valid_until", "status", "valid_until"),
    )

    @property
    def bidder_type(self) -> BidderType:
        return BidderType.COMPANY if self.company_id is not None else BidderType.PROFESSIONAL

    @property
    def bidder_id(self) -> uuid.UUID:
        return self.company_id if self.company_id is not None else self.professional_id

    @property
    def bidder_profile(self) -> Company | Professional | None:
        """The bidder's profile when it was loaded with the quote."""
        return self.company if self.company_id is not None else self.professional

    @property
    def timeline(self) -> dict:
        return {
            "start_date": self.timeline_start_date,
            "end_date": self.timeline_end_date,
            "milestones": self.milestones or [],
        }

    @property
    def is_expired(self) -> bool:
        """Read-time expiry; no stored transition ever marks a quote expired."""
        return utcnow() > self.valid_until

    @property
    def total_breakdown(self) -> Decimal:
        breakdown = self.budget_breakdown or {}
        return sum(
            (Decimal(str(breakdown.get(name, 0) or 0)) for name in BREAKDOWN_COMPONENTS),
            Decimal("0"),
        )

    @property
    def completion_percentage(self) -> float:
        """Milestone coverage of the timeline, capped at 100."""
        total = sum(float(m.get("percentage") or 0) for m in self.milestones or [])
        return min(total, 100.0)
