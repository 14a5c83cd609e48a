"""Outbox rows: requirement and quote events awaiting delivery."""

from datetime import datetime

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import (
    Base,
    JSONType,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    str_enum,
)
from src.models.enums import EventStatus


class EventOutbox(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "event_outbox"

    # e.g. "quote.selected"
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    # "requirement" or "quote", with the row's id as text
    aggregate_type: Mapped[str] = mapped_column(String(50), nullable=False)
    aggregate_id: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    schema_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    status: Mapped[EventStatus] = mapped_column(
        str_enum(EventStatus, "eventstatus"), nullable=False, default=EventStatus.PENDING
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    last_error: Mapped[str | None] = mapped_column(Text)
    processed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    __table_args__ = (
        Index("ix_event_outbox_status_created", "status", "created_at"),
        Index("ix_event_outbox_aggregate", "aggregate_type", "aggregate_id"),
    )

    @property
    def retries_left(self) -> int:
        return max(self.max_retries - self.retry_count, 0)

    def __repr__(self) -> str:
        return f"<EventOutbox {self.event_type} {self.aggregate_type}:{self.aggregate_id} {self.status.value}>"
