"""Requirement & Quote API routers."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import BudgetRange, BuildingType, QuoteStatus, RequirementStatus
from src.models.quote import Quote
from src.modules.bidding.quote_service import QuoteService
from src.modules.bidding.requirement_service import RequirementService
from src.modules.bidding.schemas import (
    QuoteAnalyticsResponse,
    QuoteCreate,
    QuoteListResponse,
    QuoteResponse,
    QuoteUpdate,
    RequirementCreate,
    RequirementListResponse,
    RequirementPublicListResponse,
    RequirementPublicResponse,
    RequirementResponse,
    SelectionResponse,
    SelectQuoteRequest,
    StatusUpdateRequest,
    TransitionResponse,
)
from src.modules.bidding.selection_service import SelectionService
from src.modules.identity.actors import Actor
from src.modules.identity.auth import get_current_actor
from src.modules.presence.registry import presence_registry
from src.schemas.responses import ERROR_RESPONSES

logger = logging.getLogger(__name__)

requirements_router = APIRouter(prefix="/requirements", tags=["requirements"])
quotes_router = APIRouter(prefix="/quotes", tags=["quotes"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _push_quote_submitted(homeowner_id: uuid.UUID, quote_id: uuid.UUID, requirement_id: uuid.UUID) -> None:
    """Live push to the homeowner, if online. Runs after the response is sent."""
    delivered = await presence_registry.send_to_user(
        homeowner_id,
        {
            "type": "quote_submitted",
            "quoteId": str(quote_id),
            "requirementId": str(requirement_id),
        },
    )
    if delivered:
        logger.debug("Pushed quote %s to homeowner %s", quote_id, homeowner_id)


def _quote_changes(body: QuoteUpdate) -> dict:
    changes = body.model_dump(exclude_unset=True, exclude={"timeline", "budget_breakdown"})
    if body.budget_breakdown is not None:
        changes["budget_breakdown"] = body.budget_breakdown.model_dump(mode="json")
    if body.timeline is not None:
        changes["timeline_start_date"] = body.timeline.start_date
        changes["timeline_end_date"] = body.timeline.end_date
        changes["milestones"] = [m.model_dump(mode="json") for m in body.timeline.milestones]
    return changes


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


@requirements_router.post("/", response_model=RequirementResponse, status_code=201)
async def create_requirement(
    body: RequirementCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Post a new requirement in ``open`` status."""
    svc = RequirementService(db)
    requirement = await svc.create_requirement(
        actor,
        title=body.title,
        description=body.description,
        budget=body.budget,
        timeline_start_date=body.timeline.start_date,
        timeline_end_date=body.timeline.end_date,
        location=body.location,
        building_type=body.building_type,
        service_type=body.service_type,
        design_preferences=body.design_preferences,
        size=body.size,
        bedrooms=body.bedrooms,
        bathrooms=body.bathrooms,
        features=body.features,
        attachments=body.attachments,
        priority=body.priority,
        request_multiple_quotes=body.request_multiple_quotes,
        contact_preference=body.contact_preference,
        notes=body.notes,
    )
    return RequirementResponse.model_validate(requirement)


@requirements_router.get("/my", response_model=RequirementListResponse)
async def list_my_requirements(
    status: RequirementStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    items, total = await RequirementService(db).list_my_requirements(
        actor, status=status, limit=limit, offset=offset
    )
    return RequirementListResponse(
        items=[RequirementResponse.model_validate(r) for r in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@requirements_router.get("/open", response_model=RequirementPublicListResponse)
async def list_open_requirements(
    building_type: BuildingType | None = Query(None, alias="buildingType"),
    location: str | None = Query(None, max_length=255),
    budget_range: BudgetRange | None = Query(None, alias="budgetRange"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Requirements still taking quotes, for bidders."""
    items, total = await RequirementService(db).list_open_requirements(
        actor,
        building_type=building_type,
        location=location,
        budget_range=budget_range,
        limit=limit,
        offset=offset,
    )
    return RequirementPublicListResponse(
        items=[RequirementPublicResponse.model_validate(r) for r in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@requirements_router.get(
    "/{requirement_id}/public", response_model=RequirementPublicResponse, responses=ERROR_RESPONSES
)
async def get_public_requirement(
    requirement_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    requirement = await RequirementService(db).get_public(requirement_id)
    return RequirementPublicResponse.model_validate(requirement)


@requirements_router.get(
    "/{requirement_id}", response_model=RequirementResponse, responses=ERROR_RESPONSES
)
async def get_requirement(
    requirement_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    requirement = await RequirementService(db).get_for_actor(requirement_id, actor)
    return RequirementResponse.model_validate(requirement)


@requirements_router.get("/{requirement_id}/quotes", response_model=list[QuoteResponse])
async def list_requirement_quotes(
    requirement_id: uuid.UUID,
    include_expired: bool = Query(False, alias="includeExpired"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Live competing quotes for the owner, with bidder summaries."""
    quotes = await RequirementService(db).list_quotes_for_owner(
        requirement_id, actor, include_expired=include_expired
    )
    return [QuoteResponse.model_validate(q) for q in quotes]


@requirements_router.put(
    "/{requirement_id}/select-quote", response_model=SelectionResponse, responses=ERROR_RESPONSES
)
async def select_quote(
    requirement_id: uuid.UUID,
    body: SelectQuoteRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Accept one quote; its live siblings are rejected."""
    requirement, quote = await SelectionService(db).select_quote(
        requirement_id, actor, body.quote_id
    )
    return SelectionResponse(
        requirement=RequirementResponse.model_validate(requirement),
        quote=QuoteResponse.model_validate(quote),
    )


@requirements_router.put(
    "/{requirement_id}/status", response_model=RequirementResponse, responses=ERROR_RESPONSES
)
async def update_requirement_status(
    requirement_id: uuid.UUID,
    body: StatusUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    requirement = await RequirementService(db).update_status(
        requirement_id, actor, body.status, reason=body.reason
    )
    return RequirementResponse.model_validate(requirement)


@requirements_router.delete(
    "/{requirement_id}", response_model=RequirementResponse, responses=ERROR_RESPONSES
)
async def cancel_requirement(
    requirement_id: uuid.UUID,
    reason: str | None = Query(None, max_length=1000),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: cancel the requirement and withdraw its open quotes."""
    requirement = await RequirementService(db).cancel_requirement(requirement_id, actor, reason)
    return RequirementResponse.model_validate(requirement)


@requirements_router.get("/{requirement_id}/transitions", response_model=list[TransitionResponse])
async def get_requirement_transitions(
    requirement_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    transitions = await RequirementService(db).get_transitions(requirement_id, actor)
    return [TransitionResponse.model_validate(t) for t in transitions]


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


@quotes_router.post("/", response_model=QuoteResponse, status_code=201, responses=ERROR_RESPONSES)
async def submit_quote(
    body: QuoteCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Submit a quote against a requirement still taking quotes."""
    quote: Quote = await QuoteService(db).submit_quote(
        body.requirement_id,
        actor,
        design_proposal=body.design_proposal,
        estimated_budget=body.estimated_budget,
        timeline_start_date=body.timeline.start_date,
        timeline_end_date=body.timeline.end_date,
        milestones=[m.model_dump(mode="json") for m in body.timeline.milestones],
        budget_breakdown=body.budget_breakdown.model_dump(mode="json"),
        additional_notes=body.additional_notes,
        terms=body.terms,
        valid_until=body.valid_until,
        attachments=body.attachments,
        design_images=body.design_images,
        specifications=body.specifications,
    )
    background_tasks.add_task(
        _push_quote_submitted, quote.requirement.homeowner_id, quote.id, quote.requirement_id
    )
    return QuoteResponse.model_validate(quote)


@quotes_router.get("/my", response_model=QuoteListResponse)
async def list_my_quotes(
    status: QuoteStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    items, total = await QuoteService(db).list_my_quotes(
        actor, status=status, limit=limit, offset=offset
    )
    return QuoteListResponse(
        items=[QuoteResponse.model_validate(q) for q in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@quotes_router.get("/analytics/summary", response_model=QuoteAnalyticsResponse)
async def get_quote_analytics(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Per-status totals and conversion rate of the caller's quotes."""
    summary = await QuoteService(db).get_analytics(actor)
    return QuoteAnalyticsResponse.model_validate(summary)


@quotes_router.get("/{quote_id}", response_model=QuoteResponse, responses=ERROR_RESPONSES)
async def get_quote(
    quote_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    quote = await QuoteService(db).get_quote(quote_id, actor)
    return QuoteResponse.model_validate(quote)


@quotes_router.put("/{quote_id}", response_model=QuoteResponse, responses=ERROR_RESPONSES)
async def update_quote(
    quote_id: uuid.UUID,
    body: QuoteUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Edit a draft or submitted quote."""
    quote = await QuoteService(db).update_quote(quote_id, actor, **_quote_changes(body))
    return QuoteResponse.model_validate(quote)


@quotes_router.delete("/{quote_id}", response_model=QuoteResponse, responses=ERROR_RESPONSES)
async def withdraw_quote(
    quote_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a quote; accepted quotes cannot be withdrawn."""
    quote = await QuoteService(db).withdraw_quote(quote_id, actor)
    return QuoteResponse.model_validate(quote)
