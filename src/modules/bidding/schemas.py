"""Pydantic v2 schemas for the requirement and quote endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, Field, model_validator

from src.models.enums import (
    BidderType,
    BudgetRange,
    BuildingType,
    ContactPreference,
    QuoteStatus,
    RequirementPriority,
    RequirementStatus,
    ServiceType,
)
from src.schemas.responses import CamelModel

# ---------------------------------------------------------------------------
# Shared value objects
# ---------------------------------------------------------------------------


class Timeline(CamelModel):
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def _end_after_start(self) -> Timeline:
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class Milestone(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    percentage: Decimal = Field(..., ge=0, le=100)
    due_date: datetime | None = None


class QuoteTimeline(Timeline):
    milestones: list[Milestone] = Field(default_factory=list)

    @model_validator(mode="after")
    def _milestones_within_budget(self) -> QuoteTimeline:
        total = sum((m.percentage for m in self.milestones), Decimal("0"))
        if total > 100:
            raise ValueError("Milestone percentages must not exceed 100 in total")
        return self


class BudgetBreakdown(CamelModel):
    materials: Decimal = Field(Decimal("0"), ge=0)
    labor: Decimal = Field(Decimal("0"), ge=0)
    equipment: Decimal = Field(Decimal("0"), ge=0)
    permits: Decimal = Field(Decimal("0"), ge=0)
    overhead: Decimal = Field(Decimal("0"), ge=0)
    profit: Decimal = Field(Decimal("0"), ge=0)
    other: Decimal = Field(Decimal("0"), ge=0)


# ---------------------------------------------------------------------------
# Requirement schemas
# ---------------------------------------------------------------------------


class RequirementCreate(CamelModel):
    service_type: ServiceType = ServiceType.GENERAL
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    design_preferences: str | None = Field(None, max_length=1000)
    budget: Decimal = Field(..., ge=0)
    timeline: Timeline
    location: str = Field(..., min_length=1, max_length=255)
    building_type: BuildingType
    size: int | None = Field(None, ge=0)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    features: list[str] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)
    priority: RequirementPriority = RequirementPriority.MEDIUM
    request_multiple_quotes: bool = True
    contact_preference: ContactPreference = ContactPreference.EMAIL
    notes: str | None = None


class RequirementPublicResponse(CamelModel):
    """What bidders see; no homeowner identity or competing quotes."""

    id: uuid.UUID
    service_type: ServiceType
    title: str
    description: str
    design_preferences: str | None = None
    budget: Decimal
    budget_range: BudgetRange | None = None
    timeline: Timeline
    timeline_duration_days: int
    location: str
    building_type: BuildingType
    size: int | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    features: list[str] = []
    attachments: list[str] = []
    status: RequirementStatus
    priority: RequirementPriority
    request_multiple_quotes: bool
    created_at: datetime


class RequirementResponse(RequirementPublicResponse):
    homeowner_id: uuid.UUID
    quotes: list[uuid.UUID] = Field(
        default_factory=list, validation_alias=AliasChoices("quote_ids", "quotes")
    )
    selected_quote: uuid.UUID | None = Field(
        None, validation_alias=AliasChoices("selected_quote_id", "selectedQuote")
    )
    is_active: bool
    contact_preference: ContactPreference
    cancelled_at: datetime | None = None
    notes: str | None = None
    updated_at: datetime


class RequirementListResponse(CamelModel):
    items: list[RequirementResponse]
    total: int
    limit: int
    offset: int


class RequirementPublicListResponse(CamelModel):
    items: list[RequirementPublicResponse]
    total: int
    limit: int
    offset: int


class StatusUpdateRequest(CamelModel):
    status: RequirementStatus
    reason: str | None = Field(None, max_length=1000)


class SelectQuoteRequest(CamelModel):
    quote_id: uuid.UUID


class TransitionResponse(CamelModel):
    id: uuid.UUID
    requirement_id: uuid.UUID
    from_status: RequirementStatus | None = None
    to_status: RequirementStatus
    triggered_by: uuid.UUID
    reason: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Quote schemas
# ---------------------------------------------------------------------------


class QuoteCreate(CamelModel):
    requirement_id: uuid.UUID
    design_proposal: str = Field(..., min_length=1, max_length=2000)
    estimated_budget: Decimal = Field(..., ge=0)
    budget_breakdown: BudgetBreakdown = Field(default_factory=BudgetBreakdown)
    timeline: QuoteTimeline
    additional_notes: str | None = Field(None, max_length=1000)
    attachments: list[str] = Field(default_factory=list)
    design_images: list[str] = Field(default_factory=list)
    specifications: dict | None = None
    terms: dict | None = None
    valid_until: datetime | None = None


class QuoteUpdate(CamelModel):
    design_proposal: str | None = Field(None, min_length=1, max_length=2000)
    estimated_budget: Decimal | None = Field(None, ge=0)
    budget_breakdown: BudgetBreakdown | None = None
    timeline: QuoteTimeline | None = None
    additional_notes: str | None = Field(None, max_length=1000)
    terms: dict | None = None


class BidderSummary(CamelModel):
    id: uuid.UUID
    name: str
    logo: str | None = None
    rating: Decimal
    is_verified: bool


class QuoteResponse(CamelModel):
    id: uuid.UUID
    requirement_id: uuid.UUID
    bidder_type: BidderType
    company_id: uuid.UUID | None = None
    professional_id: uuid.UUID | None = None
    bidder: BidderSummary | None = Field(
        None, validation_alias=AliasChoices("bidder_profile", "bidder")
    )
    design_proposal: str
    estimated_budget: Decimal
    budget_breakdown: BudgetBreakdown
    total_breakdown: Decimal
    timeline: QuoteTimeline
    completion_percentage: float
    additional_notes: str | None = None
    attachments: list[str] = []
    design_images: list[str] = []
    specifications: dict | None = None
    terms: dict | None = None
    status: QuoteStatus
    valid_until: datetime
    is_expired: bool
    is_active: bool
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    withdrawn_at: datetime | None = None
    response_message: str | None = None
    created_at: datetime
    updated_at: datetime


class QuoteListResponse(CamelModel):
    items: list[QuoteResponse]
    total: int
    limit: int
    offset: int


class SelectionResponse(CamelModel):
    requirement: RequirementResponse
    quote: QuoteResponse


class StatusSummary(CamelModel):
    count: int
    total_value: Decimal
    average_value: Decimal


class QuoteAnalyticsResponse(CamelModel):
    by_status: dict[QuoteStatus, StatusSummary]
    total_quotes: int
    accepted_quotes: int
    expired_quotes: int
    conversion_rate: float
