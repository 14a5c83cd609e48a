"""Requirement lifecycle service: posting, listings, status machine, cancellation."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    RequirementUnavailableException,
    ValidationException,
)
from src.models.enums import (
    BudgetRange,
    BuildingType,
    QuoteStatus,
    RequirementStatus,
)
from src.models.quote import Quote
from src.models.requirement import Requirement
from src.models.requirement_transition import RequirementTransition
from src.modules.bidding.constants import (
    BIDDABLE_STATUSES,
    EVENT_REQUIREMENT_CANCELLED,
    EVENT_REQUIREMENT_CREATED,
    EVENT_REQUIREMENT_STATUS_CHANGED,
    LIVE_QUOTE_STATUSES,
    MANUAL_TRANSITIONS,
    PRIORITY_RANK,
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    derive_budget_range,
)
from src.modules.events.outbox_service import OutboxService
from src.modules.identity.actors import Actor, Admin, Homeowner, is_bidder

logger = logging.getLogger(__name__)


def validate_timeline(start: datetime, end: datetime) -> None:
    if end < start:
        raise ValidationException(
            "Timeline end date must not be before its start date",
            details=[{"field": "timeline.endDate", "message": "must be on or after startDate"}],
        )


class RequirementService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_requirement(
        self,
        actor: Actor,
        title: str,
        description: str,
        budget: Decimal,
        timeline_start_date: datetime,
        timeline_end_date: datetime,
        location: str,
        building_type: BuildingType,
        **fields,
    ) -> Requirement:
        """Post a new requirement in ``open`` status for the calling homeowner."""
        if not isinstance(actor, Homeowner):
            raise ForbiddenException("Only homeowners can post requirements")
        if budget < 0:
            raise ValidationException(
                "Budget must not be negative",
                details=[{"field": "budget", "message": "must be >= 0"}],
            )
        validate_timeline(timeline_start_date, timeline_end_date)

        requirement = Requirement(
            homeowner_id=actor.user_id,
            title=title,
            description=description,
            budget=budget,
            budget_range=derive_budget_range(budget),
            timeline_start_date=timeline_start_date,
            timeline_end_date=timeline_end_date,
            location=location,
            building_type=building_type,
            status=RequirementStatus.OPEN,
            is_active=True,
            **fields,
        )
        self.db.add(requirement)
        await self.db.flush()

        self.db.add(
            RequirementTransition(
                requirement_id=requirement.id,
                from_status=None,
                to_status=RequirementStatus.OPEN,
                triggered_by=actor.user_id,
                reason="Requirement posted",
            )
        )
        await self.db.flush()

        await OutboxService(self.db).publish_event(
            event_type=EVENT_REQUIREMENT_CREATED,
            aggregate_type="requirement",
            aggregate_id=str(requirement.id),
            payload={
                "requirement_id": str(requirement.id),
                "homeowner_id": str(actor.user_id),
                "service_type": requirement.service_type.value,
                "budget_range": requirement.budget_range.value if requirement.budget_range else None,
            },
        )

        logger.info("Requirement %s posted by homeowner %s", requirement.id, actor.user_id)
        return await self.get_requirement(requirement.id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_requirement(self, requirement_id: uuid.UUID, for_update: bool = False) -> Requirement:
        """Load a requirement with its ordered quote list; NotFound if absent."""
        statement = (
            select(Requirement)
            .options(selectinload(Requirement.quote_entries))
            .where(Requirement.id == requirement_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            statement = statement.with_for_update()
        result = await self.db.execute(statement)
        requirement = result.scalar_one_or_none()
        if requirement is None:
            raise NotFoundException(f"Requirement {requirement_id} not found")
        return requirement

    async def get_for_actor(self, requirement_id: uuid.UUID, actor: Actor) -> Requirement:
        """Owner's (or an operator's) full view of a requirement."""
        requirement = await self.get_requirement(requirement_id)
        self._ensure_owner_or_admin(requirement, actor)
        return requirement

    async def get_public(self, requirement_id: uuid.UUID) -> Requirement:
        """Bidder view. Closed, inactive and missing requirements look the same."""
        result = await self.db.execute(
            select(Requirement).where(
                Requirement.id == requirement_id,
                Requirement.status.in_(BIDDABLE_STATUSES),
                Requirement.is_active.is_(True),
            )
        )
        requirement = result.scalar_one_or_none()
        if requirement is None:
            raise RequirementUnavailableException("Requirement is not available for bidding")
        return requirement

    async def list_my_requirements(
        self,
        actor: Actor,
        status: RequirementStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Requirement], int]:
        if not isinstance(actor, Homeowner):
            raise ForbiddenException("Only homeowners have requirements")

        base = select(Requirement).where(
            Requirement.homeowner_id == actor.user_id,
            Requirement.is_active.is_(True),
        )
        if status is not None:
            base = base.where(Requirement.status == status)

        total = await self._count(base)
        result = await self.db.execute(
            base.options(selectinload(Requirement.quote_entries))
            .order_by(Requirement.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def list_open_requirements(
        self,
        actor: Actor,
        building_type: BuildingType | None = None,
        location: str | None = None,
        budget_range: BudgetRange | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Requirement], int]:
        """Requirements still taking quotes, most urgent first."""
        if not (is_bidder(actor) or isinstance(actor, Admin)):
            raise ForbiddenException("Only bidders can browse open requirements")

        base = select(Requirement).where(
            Requirement.status.in_(BIDDABLE_STATUSES),
            Requirement.is_active.is_(True),
        )
        if building_type is not None:
            base = base.where(Requirement.building_type == building_type)
        if location:
            base = base.where(func.lower(Requirement.location).contains(location.lower()))
        if budget_range is not None:
            base = base.where(Requirement.budget_range == budget_range)

        total = await self._count(base)
        priority_order = case(
            *[(Requirement.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()],
            else_=0,
        )
        result = await self.db.execute(
            base.order_by(priority_order.desc(), Requirement.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def list_quotes_for_owner(
        self,
        requirement_id: uuid.UUID,
        actor: Actor,
        include_expired: bool = False,
    ) -> list[Quote]:
        """Live competing quotes with their bidder profiles, newest first."""
        requirement = await self.get_requirement(requirement_id)
        self._ensure_owner_or_admin(requirement, actor)

        statement = (
            select(Quote)
            .options(selectinload(Quote.company), selectinload(Quote.professional))
            .where(
                Quote.requirement_id == requirement_id,
                Quote.status.in_(LIVE_QUOTE_STATUSES),
                Quote.is_active.is_(True),
            )
            .order_by(Quote.created_at.desc())
        )
        if not include_expired:
            statement = statement.where(Quote.valid_until > datetime.now(UTC))
        result = await self.db.execute(statement)
        return list(result.scalars().all())

    async def get_transitions(
        self, requirement_id: uuid.UUID, actor: Actor
    ) -> list[RequirementTransition]:
        requirement = await self.get_requirement(requirement_id)
        self._ensure_owner_or_admin(requirement, actor)
        result = await self.db.execute(
            select(RequirementTransition)
            .where(RequirementTransition.requirement_id == requirement_id)
            .order_by(RequirementTransition.created_at.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # State Machine
    # ------------------------------------------------------------------

    async def record_transition(
        self,
        requirement: Requirement,
        to_status: RequirementStatus,
        triggered_by: uuid.UUID,
        reason: str | None = None,
    ) -> RequirementTransition:
        """Move ``requirement`` to ``to_status`` and append the audit record.

        The caller holds the row lock. Only edges of VALID_TRANSITIONS pass.
        """
        from_status = requirement.status
        if to_status not in VALID_TRANSITIONS.get(from_status, set()):
            raise InvalidTransitionException(
                f"Cannot move requirement from '{from_status.value}' to '{to_status.value}'"
            )
        requirement.status = to_status
        record = RequirementTransition(
            requirement_id=requirement.id,
            from_status=from_status,
            to_status=to_status,
            triggered_by=triggered_by,
            reason=reason,
        )
        self.db.add(record)
        await self.db.flush()
        return record

    async def update_status(
        self,
        requirement_id: uuid.UUID,
        actor: Actor,
        new_status: RequirementStatus,
        reason: str | None = None,
    ) -> Requirement:
        """Explicit status change by the owner or an operator.

        Only the manual edges are allowed; cancellation runs the cascade.
        """
        if not isinstance(actor, (Homeowner, Admin)):
            raise ForbiddenException("Only the requirement owner can change its status")
        requirement = await self.get_requirement(requirement_id, for_update=True)
        self._ensure_owner_or_admin(requirement, actor)

        if new_status == RequirementStatus.CANCELLED:
            return await self._cancel(requirement, actor, reason)

        current = requirement.status
        allowed = MANUAL_TRANSITIONS.get(current, set())
        if new_status not in allowed:
            raise InvalidTransitionException(
                f"Cannot change status from '{current.value}' to '{new_status.value}'. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        await self.record_transition(requirement, new_status, actor.user_id, reason)

        await OutboxService(self.db).publish_event(
            event_type=EVENT_REQUIREMENT_STATUS_CHANGED,
            aggregate_type="requirement",
            aggregate_id=str(requirement.id),
            payload={
                "requirement_id": str(requirement.id),
                "from_status": current.value,
                "to_status": new_status.value,
                "selected_quote_id": str(requirement.selected_quote_id)
                if requirement.selected_quote_id else None,
                "triggered_by": str(actor.user_id),
            },
        )

        logger.info(
            "Requirement %s status %s -> %s by %s",
            requirement.id, current.value, new_status.value, actor.user_id,
        )
        return await self.get_requirement(requirement.id)

    async def cancel_requirement(
        self, requirement_id: uuid.UUID, actor: Actor, reason: str | None = None
    ) -> Requirement:
        """Soft delete: cancel the requirement and withdraw its open quotes."""
        if not isinstance(actor, (Homeowner, Admin)):
            raise ForbiddenException("Only the requirement owner can cancel it")
        requirement = await self.get_requirement(requirement_id, for_update=True)
        self._ensure_owner_or_admin(requirement, actor)
        return await self._cancel(requirement, actor, reason)

    async def _cancel(
        self, requirement: Requirement, actor: Actor, reason: str | None
    ) -> Requirement:
        if requirement.status in TERMINAL_STATUSES:
            raise InvalidTransitionException(
                f"Requirement is already '{requirement.status.value}'"
            )
        from_status = requirement.status
        now = datetime.now(UTC)

        # Accepted quotes stay accepted; already withdrawn ones are untouched
        affected_result = await self.db.execute(
            select(Quote.id).where(
                Quote.requirement_id == requirement.id,
                Quote.status.notin_([QuoteStatus.ACCEPTED, QuoteStatus.WITHDRAWN]),
            )
        )
        withdrawn_ids = list(affected_result.scalars().all())
        await self.db.execute(
            update(Quote)
            .where(
                Quote.requirement_id == requirement.id,
                Quote.status.notin_([QuoteStatus.ACCEPTED, QuoteStatus.WITHDRAWN]),
            )
            .values(status=QuoteStatus.WITHDRAWN, is_active=False, withdrawn_at=now)
            .execution_options(synchronize_session=False)
        )

        await self.record_transition(
            requirement, RequirementStatus.CANCELLED, actor.user_id, reason or "Cancelled by owner"
        )
        requirement.is_active = False
        requirement.cancelled_at = now
        await self.db.flush()

        await OutboxService(self.db).publish_event(
            event_type=EVENT_REQUIREMENT_CANCELLED,
            aggregate_type="requirement",
            aggregate_id=str(requirement.id),
            payload={
                "requirement_id": str(requirement.id),
                "title": requirement.title,
                "from_status": from_status.value,
                "withdrawn_quote_ids": [str(q) for q in withdrawn_ids],
                "triggered_by": str(actor.user_id),
                "reason": reason,
            },
        )

        logger.info(
            "Requirement %s cancelled by %s; %d quotes withdrawn",
            requirement.id, actor.user_id, len(withdrawn_ids),
        )
        return await self.get_requirement(requirement.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_owner_or_admin(requirement: Requirement, actor: Actor) -> None:
        if isinstance(actor, Admin):
            return
        if isinstance(actor, Homeowner) and requirement.homeowner_id == actor.user_id:
            return
        raise ForbiddenException("You do not have access to this requirement")

    async def _count(self, statement) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(statement.subquery())
        )
        return result.scalar() or 0
