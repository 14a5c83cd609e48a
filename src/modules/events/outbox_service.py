"""Transactional outbox writer for marketplace events.

Events are rows in ``event_outbox`` written through the caller's session, so
they commit or roll back with the business change that produced them. The
Celery beat task picks them up after commit.
"""

from pydantic_core import to_jsonable_python
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.enums import EventStatus
from src.models.event_outbox import EventOutbox


class OutboxService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def publish_event(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict,
        schema_version: int = 1,
    ) -> EventOutbox:
        # UUIDs, Decimals and datetimes become JSON-safe strings here
        event = EventOutbox(
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=str(aggregate_id),
            payload=to_jsonable_python(payload),
            status=EventStatus.PENDING,
            schema_version=schema_version,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def events_for(self, aggregate_type: str, aggregate_id: str) -> list[EventOutbox]:
        """All events of one requirement or quote, oldest first."""
        stmt = (
            select(EventOutbox)
            .where(EventOutbox.aggregate_type == aggregate_type)
            .where(EventOutbox.aggregate_id == str(aggregate_id))
            .order_by(EventOutbox.created_at, EventOutbox.id)
        )
        return list((await self.session.scalars(stmt)).all())
