import uuid
from datetime import datetime

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, UTCDateTime, UUIDPrimaryKeyMixin, utcnow


class ProcessedEvent(UUIDPrimaryKeyMixin, Base):
    """Marks an outbox event as delivered so a redelivery is skipped.

    Rows are pruned once ``expires_at`` passes.
    """

    __tablename__ = "processed_events"

    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, unique=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    # Comma-joined names of the handlers that ran, or "no_handlers"
    handler_name: Mapped[str] = mapped_column(String(500), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
