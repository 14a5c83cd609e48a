"""Quote lifecycle service: submit, read, update, withdraw, analytics."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.config import settings
from src.exceptions import (
    DuplicateQuoteException,
    InvalidStateException,
    QuoteNotFoundException,
    RequirementUnavailableException,
    ValidationException,
)
from src.models.enums import (
    NotificationPriority,
    NotificationType,
    QuoteStatus,
    RequirementStatus,
)
from src.models.quote import Quote
from src.models.requirement import Requirement
from src.models.requirement_quote import RequirementQuote
from src.modules.bidding.constants import (
    BIDDABLE_STATUSES,
    EDITABLE_QUOTE_STATUSES,
    EVENT_QUOTE_SUBMITTED,
    EVENT_QUOTE_UPDATED,
    EVENT_QUOTE_WITHDRAWN,
    LIVE_QUOTE_STATUSES,
)
from src.modules.bidding.profiles import Bidder, resolve_bidder
from src.modules.bidding.requirement_service import RequirementService, validate_timeline
from src.modules.events.outbox_service import OutboxService
from src.modules.identity.actors import Actor, Admin, Homeowner
from src.modules.notification.service import NotificationService

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class QuoteService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit_quote(
        self,
        requirement_id: uuid.UUID,
        actor: Actor,
        design_proposal: str,
        estimated_budget: Decimal,
        timeline_start_date: datetime,
        timeline_end_date: datetime,
        milestones: list[dict] | None = None,
        budget_breakdown: dict | None = None,
        additional_notes: str | None = None,
        terms: dict | None = None,
        valid_until: datetime | None = None,
        **fields,
    ) -> Quote:
        """Submit a quote for a requirement.

        Guards, in order, each with its own failure:
        - caller is a company admin or professional (Forbidden)
        - the bidder profile exists, and is verified for professionals (ProfileNotFound)
        - requirement exists, is active and still taking quotes (RequirementUnavailable)
        - no quote of this bidder exists on the requirement, in any status (DuplicateQuote)
        """
        bidder = await resolve_bidder(self.db, actor)
        if estimated_budget < 0:
            raise ValidationException(
                "Estimated budget must not be negative",
                details=[{"field": "estimatedBudget", "message": "must be >= 0"}],
            )
        validate_timeline(timeline_start_date, timeline_end_date)

        # Lock the requirement so submissions and selection serialize on it
        result = await self.db.execute(
            select(Requirement)
            .where(Requirement.id == requirement_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        requirement = result.scalar_one_or_none()
        if (
            requirement is None
            or not requirement.is_active
            or requirement.status not in BIDDABLE_STATUSES
        ):
            raise RequirementUnavailableException("Requirement is not available for bidding")

        if await self._has_quoted(requirement_id, bidder):
            raise DuplicateQuoteException("You have already quoted on this requirement")

        now = datetime.now(UTC)
        quote = Quote(
            requirement_id=requirement_id,
            design_proposal=design_proposal,
            estimated_budget=estimated_budget,
            budget_breakdown=budget_breakdown or {},
            timeline_start_date=timeline_start_date,
            timeline_end_date=timeline_end_date,
            milestones=milestones or [],
            additional_notes=additional_notes,
            terms=terms,
            status=QuoteStatus.SUBMITTED,
            valid_until=valid_until or now + timedelta(days=settings.quote_validity_days),
            is_active=True,
            submitted_at=now,
            **bidder.quote_fields(),
            **fields,
        )
        # The unique (requirement, bidder) constraint catches a racing duplicate
        try:
            async with self.db.begin_nested():
                self.db.add(quote)
                await self.db.flush()
        except IntegrityError as exc:
            raise DuplicateQuoteException("You have already quoted on this requirement") from exc

        self.db.add(RequirementQuote(requirement_id=requirement_id, quote_id=quote.id))
        if requirement.status == RequirementStatus.OPEN:
            await RequirementService(self.db).record_transition(
                requirement,
                RequirementStatus.REVIEWING_QUOTES,
                actor.user_id,
                reason="First quote received",
            )
        await self.db.flush()

        await OutboxService(self.db).publish_event(
            event_type=EVENT_QUOTE_SUBMITTED,
            aggregate_type="quote",
            aggregate_id=str(quote.id),
            payload={
                "quote_id": str(quote.id),
                "requirement_id": str(requirement_id),
                "homeowner_id": str(requirement.homeowner_id),
                "bidder_type": bidder.type.value,
                "bidder_id": str(bidder.profile_id),
                "estimated_budget": str(estimated_budget),
            },
        )

        await NotificationService(self.db).notify(
            recipient_id=requirement.homeowner_id,
            type=NotificationType.QUOTE_SUBMITTED,
            title="New quote received",
            message=f"{bidder.profile.name} submitted a quote for '{requirement.title}'",
            related_id=quote.id,
            related_model="Quote",
            priority=NotificationPriority.HIGH,
        )

        quote.requirement = requirement
        logger.info(
            "Quote %s submitted for requirement %s by %s %s (budget: %s)",
            quote.id, requirement_id, bidder.type.value, bidder.profile_id, estimated_budget,
        )
        return quote

    async def _has_quoted(self, requirement_id: uuid.UUID, bidder: Bidder) -> bool:
        """True if the bidder has any quote on the requirement, withdrawn ones included."""
        result = await self.db.execute(
            select(Quote.id).where(Quote.requirement_id == requirement_id, bidder.quote_filter())
        )
        return result.first() is not None

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def load_quote(self, quote_id: uuid.UUID, for_update: bool = False) -> Quote:
        statement = (
            select(Quote)
            .options(selectinload(Quote.company), selectinload(Quote.professional))
            .where(Quote.id == quote_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            statement = statement.with_for_update()
        result = await self.db.execute(statement)
        quote = result.scalar_one_or_none()
        if quote is None:
            raise QuoteNotFoundException(f"Quote {quote_id} not found")
        return quote

    async def get_quote(self, quote_id: uuid.UUID, actor: Actor) -> Quote:
        """Readable by the bidder, the requirement's homeowner, or an operator.

        Anyone else gets QuoteNotFound, the same answer as for a missing quote.
        """
        quote = await self.load_quote(quote_id)
        if isinstance(actor, Admin):
            return quote
        if isinstance(actor, Homeowner):
            homeowner_result = await self.db.execute(
                select(Requirement.homeowner_id).where(Requirement.id == quote.requirement_id)
            )
            if homeowner_result.scalar_one_or_none() == actor.user_id:
                return quote
            raise QuoteNotFoundException(f"Quote {quote_id} not found")
        bidder = await resolve_bidder(self.db, actor)
        if not bidder.owns(quote):
            raise QuoteNotFoundException(f"Quote {quote_id} not found")
        return quote

    async def _get_owned_quote(
        self, quote_id: uuid.UUID, actor: Actor, for_update: bool = False
    ) -> tuple[Quote, Bidder]:
        bidder = await resolve_bidder(self.db, actor)
        quote = await self.load_quote(quote_id, for_update=for_update)
        if not bidder.owns(quote):
            raise QuoteNotFoundException(f"Quote {quote_id} not found")
        return quote, bidder

    async def list_my_quotes(
        self,
        actor: Actor,
        status: QuoteStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Quote], int]:
        """The bidder's active quotes, newest first."""
        bidder = await resolve_bidder(self.db, actor)
        base = select(Quote).where(bidder.quote_filter(), Quote.is_active.is_(True))
        if status is not None:
            base = base.where(Quote.status == status)

        total_result = await self.db.execute(select(func.count()).select_from(base.subquery()))
        total = total_result.scalar() or 0

        result = await self.db.execute(
            base.options(selectinload(Quote.company), selectinload(Quote.professional))
            .order_by(Quote.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_quote(self, quote_id: uuid.UUID, actor: Actor, **changes) -> Quote:
        """Patch proposal fields while the quote is still a draft or submitted."""
        quote, bidder = await self._get_owned_quote(quote_id, actor, for_update=True)
        if quote.status not in EDITABLE_QUOTE_STATUSES:
            raise InvalidStateException(
                f"Cannot update a quote in status '{quote.status.value}'"
            )

        updatable = {
            "design_proposal",
            "estimated_budget",
            "budget_breakdown",
            "timeline_start_date",
            "timeline_end_date",
            "milestones",
            "additional_notes",
            "terms",
        }
        applied = {key: value for key, value in changes.items() if key in updatable and value is not None}
        validate_timeline(
            applied.get("timeline_start_date", quote.timeline_start_date),
            applied.get("timeline_end_date", quote.timeline_end_date),
        )
        for key, value in applied.items():
            setattr(quote, key, value)
        await self.db.flush()

        await OutboxService(self.db).publish_event(
            event_type=EVENT_QUOTE_UPDATED,
            aggregate_type="quote",
            aggregate_id=str(quote.id),
            payload={
                "quote_id": str(quote.id),
                "requirement_id": str(quote.requirement_id),
                "fields": sorted(applied),
            },
        )
        logger.info("Quote %s updated by %s %s", quote.id, bidder.type.value, bidder.profile_id)
        return await self.load_quote(quote.id)

    # ------------------------------------------------------------------
    # Withdraw
    # ------------------------------------------------------------------

    async def withdraw_quote(self, quote_id: uuid.UUID, actor: Actor) -> Quote:
        """Withdraw a quote unless it has been accepted.

        Withdrawing twice is a no-op. The quote leaves the requirement's quote
        list; the requirement's status does not change.
        """
        quote, bidder = await self._get_owned_quote(quote_id, actor)
        if quote.status == QuoteStatus.WITHDRAWN:
            return quote
        if quote.status == QuoteStatus.ACCEPTED:
            raise InvalidStateException("An accepted quote cannot be withdrawn")

        # Same lock order as selection: requirement row first, then quotes
        await self.db.execute(
            select(Requirement.id).where(Requirement.id == quote.requirement_id).with_for_update()
        )
        result = await self.db.execute(
            update(Quote)
            .where(
                Quote.id == quote_id,
                Quote.status.notin_([QuoteStatus.ACCEPTED, QuoteStatus.WITHDRAWN]),
            )
            .values(
                status=QuoteStatus.WITHDRAWN,
                is_active=False,
                withdrawn_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Lost the race; report what the winner left behind
            quote = await self.load_quote(quote_id)
            if quote.status == QuoteStatus.ACCEPTED:
                raise InvalidStateException("An accepted quote cannot be withdrawn")
            return quote

        await self.db.execute(
            delete(RequirementQuote).where(
                RequirementQuote.requirement_id == quote.requirement_id,
                RequirementQuote.quote_id == quote_id,
            )
        )

        await OutboxService(self.db).publish_event(
            event_type=EVENT_QUOTE_WITHDRAWN,
            aggregate_type="quote",
            aggregate_id=str(quote_id),
            payload={
                "quote_id": str(quote_id),
                "requirement_id": str(quote.requirement_id),
                "bidder_name": bidder.profile.name,
            },
        )

        logger.info("Quote %s withdrawn by %s %s", quote_id, bidder.type.value, bidder.profile_id)
        return await self.load_quote(quote_id)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def get_analytics(self, actor: Actor) -> dict:
        """Per-status totals of the bidder's active quotes plus conversion figures."""
        bidder = await resolve_bidder(self.db, actor)
        result = await self.db.execute(
            select(
                Quote.status,
                func.count(Quote.id),
                func.coalesce(func.sum(Quote.estimated_budget), 0),
            )
            .where(bidder.quote_filter(), Quote.is_active.is_(True))
            .group_by(Quote.status)
        )

        by_status: dict[QuoteStatus, dict] = {}
        for status, count, total_value in result.all():
            total_value = Decimal(str(total_value))
            by_status[status] = {
                "count": count,
                "total_value": total_value.quantize(_CENT),
                "average_value": (total_value / count).quantize(_CENT, ROUND_HALF_UP)
                if count else Decimal("0.00"),
            }

        expired_result = await self.db.execute(
            select(func.count(Quote.id)).where(
                bidder.quote_filter(),
                Quote.is_active.is_(True),
                Quote.status.in_(LIVE_QUOTE_STATUSES),
                Quote.valid_until < datetime.now(UTC),
            )
        )

        total_quotes = sum(entry["count"] for entry in by_status.values())
        accepted = by_status.get(QuoteStatus.ACCEPTED, {}).get("count", 0)
        conversion_rate = round(accepted / total_quotes * 100, 1) if total_quotes else 0.0
        return {
            "by_status": by_status,
            "total_quotes": total_quotes,
            "accepted_quotes": accepted,
            "expired_quotes": expired_result.scalar() or 0,
            "conversion_rate": conversion_rate,
        }
