"""Outbox handlers that fan out advisory notifications.

They run in the Celery worker's sync session after the originating
transaction has committed.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from src.models.enums import NotificationPriority, NotificationType, QuoteStatus
from src.models.notification import Notification
from src.models.quote import Quote
from src.models.requirement import Requirement
from src.modules.bidding.constants import (
    EVENT_QUOTE_SELECTED,
    EVENT_QUOTE_WITHDRAWN,
    EVENT_REQUIREMENT_CANCELLED,
    EVENT_REQUIREMENT_STATUS_CHANGED,
)
from src.modules.events.handlers import EventHandlerRegistry

logger = logging.getLogger(__name__)


def _load_quotes(session: Session, quote_ids: list[str]) -> list[Quote]:
    if not quote_ids:
        return []
    return list(
        session.execute(
            select(Quote)
            .options(selectinload(Quote.company), selectinload(Quote.professional))
            .where(Quote.id.in_([uuid.UUID(q) for q in quote_ids]))
        ).scalars().all()
    )


def _bidder_user_id(quote: Quote) -> uuid.UUID | None:
    if quote.company is not None:
        return quote.company.admin_user_id
    if quote.professional is not None:
        return quote.professional.user_id
    return None


def _add(session: Session, recipient_id: uuid.UUID | None, **fields) -> None:
    if recipient_id is None:
        return
    session.add(Notification(recipient_id=recipient_id, **fields))


def notify_selection_outcome(session: Session, payload: dict) -> None:
    """Tell the winner it was accepted and every rejected sibling it lost."""
    title = payload.get("requirement_title", "your requirement")
    for quote in _load_quotes(session, [payload["quote_id"], *payload.get("rejected_quote_ids", [])]):
        if quote.status == QuoteStatus.ACCEPTED:
            _add(
                session,
                _bidder_user_id(quote),
                type=NotificationType.QUOTE_ACCEPTED,
                title="Your quote was accepted",
                message=f"Your quote for '{title}' was selected by the homeowner",
                related_id=quote.id,
                related_model="Quote",
                priority=NotificationPriority.HIGH,
            )
        elif quote.status == QuoteStatus.REJECTED:
            _add(
                session,
                _bidder_user_id(quote),
                type=NotificationType.QUOTE_REJECTED,
                title="Your quote was not selected",
                message=f"The homeowner selected another quote for '{title}'",
                related_id=quote.id,
                related_model="Quote",
                priority=NotificationPriority.MEDIUM,
            )
    session.flush()


def notify_requirement_cancelled(session: Session, payload: dict) -> None:
    """Tell bidders whose quotes the cancellation withdrew."""
    title = payload.get("title", "a requirement")
    for quote in _load_quotes(session, payload.get("withdrawn_quote_ids", [])):
        _add(
            session,
            _bidder_user_id(quote),
            type=NotificationType.REQUIREMENT_CANCELLED,
            title="Requirement cancelled",
            message=f"'{title}' was cancelled and your quote was withdrawn",
            related_id=uuid.UUID(payload["requirement_id"]),
            related_model="Requirement",
            priority=NotificationPriority.MEDIUM,
        )
    session.flush()


def notify_quote_withdrawn(session: Session, payload: dict) -> None:
    requirement = session.get(Requirement, uuid.UUID(payload["requirement_id"]))
    if requirement is None:
        logger.warning("Requirement %s vanished before withdrawal notice", payload["requirement_id"])
        return
    _add(
        session,
        requirement.homeowner_id,
        type=NotificationType.QUOTE_WITHDRAWN,
        title="A quote was withdrawn",
        message=f"{payload.get('bidder_name', 'A bidder')} withdrew their quote for '{requirement.title}'",
        related_id=uuid.UUID(payload["quote_id"]),
        related_model="Quote",
        priority=NotificationPriority.LOW,
    )
    session.flush()


def notify_status_changed(session: Session, payload: dict) -> None:
    """Keep the selected bidder informed as the project progresses."""
    quote_id = payload.get("selected_quote_id")
    if not quote_id:
        return
    for quote in _load_quotes(session, [quote_id]):
        _add(
            session,
            _bidder_user_id(quote),
            type=NotificationType.REQUIREMENT_STATUS_CHANGED,
            title="Project status updated",
            message=f"Project status changed to {payload['to_status'].replace('_', ' ')}",
            related_id=uuid.UUID(payload["requirement_id"]),
            related_model="Requirement",
            priority=NotificationPriority.LOW,
        )
    session.flush()


def register_handlers() -> None:
    EventHandlerRegistry.register(EVENT_QUOTE_SELECTED, notify_selection_outcome)
    EventHandlerRegistry.register(EVENT_REQUIREMENT_CANCELLED, notify_requirement_cancelled)
    EventHandlerRegistry.register(EVENT_QUOTE_WITHDRAWN, notify_quote_withdrawn)
    EventHandlerRegistry.register(EVENT_REQUIREMENT_STATUS_CHANGED, notify_status_changed)
