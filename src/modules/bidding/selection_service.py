"""Selection coordinator: a homeowner accepts one quote of a requirement.

Writes go in a fixed order: the winning quote, then its siblings, then the
requirement. Each write is a compare-and-set whose row count is checked, and
the requirement row is locked for the whole operation, so two selections (or a
selection and a withdrawal) cannot both succeed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import (
    AlreadySelectedException,
    ForbiddenException,
    InvalidStateException,
    QuoteNotFoundException,
    SelectionIncompleteException,
)
from src.models.enums import QuoteStatus, RequirementStatus
from src.models.quote import Quote
from src.models.requirement import Requirement
from src.models.requirement_transition import RequirementTransition
from src.modules.bidding.constants import (
    EVENT_QUOTE_SELECTED,
    SELECTABLE_QUOTE_STATUSES,
    SELECTED_STATUSES,
)
from src.modules.bidding.quote_service import QuoteService
from src.modules.bidding.requirement_service import RequirementService
from src.modules.events.outbox_service import OutboxService
from src.modules.identity.actors import Actor, Homeowner

logger = logging.getLogger(__name__)

SELECTION_STEPS = ("quote_accepted", "siblings_rejected", "requirement_selected")


class SelectionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def select_quote(
        self,
        requirement_id: uuid.UUID,
        actor: Actor,
        quote_id: uuid.UUID,
    ) -> tuple[Requirement, Quote]:
        """Accept ``quote_id``, reject its live siblings, and mark the requirement.

        Failures before the first write raise Forbidden, NotFound,
        QuoteNotFound, AlreadySelected or InvalidState. A database failure
        after the first write raises SelectionIncompleteException listing the
        steps that were reached.
        """
        if not isinstance(actor, Homeowner):
            raise ForbiddenException("Only the requirement owner can select a quote")

        requirements = RequirementService(self.db)
        # Re-read under lock; this read is the gating condition
        requirement = await requirements.get_requirement(requirement_id, for_update=True)
        if requirement.homeowner_id != actor.user_id:
            raise ForbiddenException("Only the requirement owner can select a quote")

        result = await self.db.execute(
            select(Quote).where(Quote.id == quote_id).execution_options(populate_existing=True)
        )
        quote = result.scalar_one_or_none()
        if quote is None or quote.requirement_id != requirement_id:
            raise QuoteNotFoundException(f"Quote {quote_id} not found on this requirement")

        if requirement.status in SELECTED_STATUSES or requirement.selected_quote_id is not None:
            raise AlreadySelectedException("A quote has already been selected for this requirement")
        if requirement.status != RequirementStatus.REVIEWING_QUOTES:
            raise InvalidStateException(
                f"Cannot select a quote while the requirement is '{requirement.status.value}'"
            )
        if quote.status not in SELECTABLE_QUOTE_STATUSES or not quote.is_active:
            raise InvalidStateException(f"Cannot select a quote in status '{quote.status.value}'")

        reached: list[str] = []
        now = datetime.now(UTC)
        try:
            # (a) winner
            accepted = await self.db.execute(
                update(Quote)
                .where(
                    Quote.id == quote_id,
                    Quote.status.in_(SELECTABLE_QUOTE_STATUSES),
                    Quote.is_active.is_(True),
                )
                .values(status=QuoteStatus.ACCEPTED, reviewed_at=now)
                .execution_options(synchronize_session=False)
            )
            if accepted.rowcount != 1:
                raise InvalidStateException("The quote was withdrawn before it could be selected")
            reached.append("quote_accepted")

            # (b) siblings; withdrawn and already rejected quotes keep their status
            sibling_result = await self.db.execute(
                select(Quote.id).where(
                    Quote.requirement_id == requirement_id,
                    Quote.id != quote_id,
                    Quote.status.notin_(
                        [QuoteStatus.WITHDRAWN, QuoteStatus.REJECTED, QuoteStatus.ACCEPTED]
                    ),
                )
            )
            rejected_ids = list(sibling_result.scalars().all())
            if rejected_ids:
                await self.db.execute(
                    update(Quote)
                    .where(
                        Quote.id.in_(rejected_ids),
                        Quote.status.notin_([QuoteStatus.WITHDRAWN, QuoteStatus.ACCEPTED]),
                    )
                    .values(status=QuoteStatus.REJECTED, reviewed_at=now)
                    .execution_options(synchronize_session=False)
                )
            reached.append("siblings_rejected")

            # (c) requirement last
            selected = await self.db.execute(
                update(Requirement)
                .where(
                    Requirement.id == requirement_id,
                    Requirement.status == RequirementStatus.REVIEWING_QUOTES,
                    Requirement.selected_quote_id.is_(None),
                )
                .values(status=RequirementStatus.COMPANY_SELECTED, selected_quote_id=quote_id)
                .execution_options(synchronize_session=False)
            )
            if selected.rowcount != 1:
                raise AlreadySelectedException(
                    "A quote has already been selected for this requirement"
                )
            reached.append("requirement_selected")
        except SQLAlchemyError as exc:
            logger.exception(
                "Selection of quote %s on requirement %s failed after %s",
                quote_id, requirement_id, reached or "no writes",
            )
            raise SelectionIncompleteException(
                "Quote selection failed part-way; the transaction was rolled back and can be retried",
                details=[{"step": step, "reached": step in reached} for step in SELECTION_STEPS],
            ) from exc

        requirement = await requirements.get_requirement(requirement_id)
        self.db.add(
            RequirementTransition(
                requirement_id=requirement_id,
                from_status=RequirementStatus.REVIEWING_QUOTES,
                to_status=RequirementStatus.COMPANY_SELECTED,
                triggered_by=actor.user_id,
                reason=f"Quote {quote_id} selected",
            )
        )
        await self.db.flush()

        await OutboxService(self.db).publish_event(
            event_type=EVENT_QUOTE_SELECTED,
            aggregate_type="requirement",
            aggregate_id=str(requirement_id),
            payload={
                "requirement_id": str(requirement_id),
                "requirement_title": requirement.title,
                "quote_id": str(quote_id),
                "rejected_quote_ids": [str(q) for q in rejected_ids],
                "homeowner_id": str(actor.user_id),
            },
        )

        logger.info(
            "Quote %s selected for requirement %s by %s; %d siblings rejected",
            quote_id, requirement_id, actor.user_id, len(rejected_ids),
        )
        quote = await QuoteService(self.db).load_quote(quote_id)
        return requirement, quote

