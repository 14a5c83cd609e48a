"""Unit tests for OutboxService: events written in the caller's transaction."""

import uuid

import pytest

from src.models.enums import EventStatus
from src.modules.bidding.constants import (
    EVENT_QUOTE_SELECTED,
    EVENT_QUOTE_SUBMITTED,
    EVENT_REQUIREMENT_CREATED,
)
from src.modules.events.outbox_service import OutboxService


class TestOutboxServicePublish:
    """Tests for OutboxService.publish_event."""

    @pytest.mark.asyncio
    async def test_publish_event_creates_pending_event(self, db_session):
        service = OutboxService(db_session)
        requirement_id = str(uuid.uuid4())

        event = await service.publish_event(
            event_type=EVENT_REQUIREMENT_CREATED,
            aggregate_type="requirement",
            aggregate_id=requirement_id,
            payload={"requirement_id": requirement_id, "budget_range": "Under ₹10L"},
        )

        assert event.id is not None
        assert event.event_type == "requirement.created"
        assert event.aggregate_type == "requirement"
        assert event.status == EventStatus.PENDING
        assert event.retry_count == 0
        assert event.schema_version == 1
        assert event.payload["budget_range"] == "Under ₹10L"

    @pytest.mark.asyncio
    async def test_publish_event_with_custom_schema_version(self, db_session):
        service = OutboxService(db_session)

        event = await service.publish_event(
            event_type=EVENT_QUOTE_SUBMITTED,
            aggregate_type="quote",
            aggregate_id=str(uuid.uuid4()),
            payload={},
            schema_version=2,
        )

        assert event.schema_version == 2

    @pytest.mark.asyncio
    async def test_rolled_back_transaction_discards_event(self, db_session):
        service = OutboxService(db_session)
        aggregate_id = str(uuid.uuid4())

        await service.publish_event(
            event_type=EVENT_QUOTE_SELECTED,
            aggregate_type="requirement",
            aggregate_id=aggregate_id,
            payload={},
        )
        await db_session.rollback()

        assert await service.events_for("requirement", aggregate_id) == []


class TestOutboxServiceEventsFor:
    """Tests for OutboxService.events_for."""

    @pytest.mark.asyncio
    async def test_events_for_filters_by_aggregate(self, db_session):
        service = OutboxService(db_session)
        mine = str(uuid.uuid4())
        other = str(uuid.uuid4())

        await service.publish_event(EVENT_REQUIREMENT_CREATED, "requirement", mine, {})
        await service.publish_event(EVENT_QUOTE_SELECTED, "requirement", mine, {})
        await service.publish_event(EVENT_REQUIREMENT_CREATED, "requirement", other, {})

        events = await service.events_for("requirement", mine)
        assert [e.event_type for e in events] == ["requirement.created", "quote.selected"]

    @pytest.mark.asyncio
    async def test_events_for_unknown_aggregate_is_empty(self, db_session):
        service = OutboxService(db_session)
        assert await service.events_for("quote", str(uuid.uuid4())) == []
