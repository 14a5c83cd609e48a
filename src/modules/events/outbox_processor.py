"""OutboxProcessor: synchronous batch processor for Celery workers."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from src.config import settings
from src.database.engine import sync_engine
from src.models.enums import EventStatus
from src.models.event_outbox import EventOutbox
from src.models.processed_event import ProcessedEvent
from src.modules.events.handlers import EventHandlerRegistry

logger = logging.getLogger(__name__)

PROCESSED_EVENT_TTL = timedelta(days=7)
COMPLETED_EVENT_RETENTION = timedelta(days=30)


class OutboxProcessor:
    """Processes pending outbox events using sync sessions (for Celery workers).

    Uses SELECT ... FOR UPDATE SKIP LOCKED for safe multi-worker concurrency.
    Tracks idempotency via the processed_events table.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self.engine = engine or sync_engine

    def process_batch(self, batch_size: int | None = None) -> dict:
        """Process a batch of pending events.

        Returns dict with 'processed' and 'failed' counts.
        """
        batch_size = batch_size or settings.event_outbox_batch_size
        processed_count = 0
        failed_count = 0

        with Session(self.engine) as session:
            pending = session.execute(
                select(EventOutbox)
                .where(EventOutbox.status == EventStatus.PENDING)
                .order_by(EventOutbox.created_at.asc())
                .limit(batch_size)
                .with_for_update(skip_locked=True)
            ).scalars().all()
            pending_ids = [(event.id, event.event_type) for event in pending]

            for event_id, event_type in pending_ids:
                try:
                    event = session.get(EventOutbox, event_id)
                    now = datetime.now(UTC)

                    # Check idempotency: skip if already processed
                    already_processed = session.execute(
                        select(ProcessedEvent.id).where(ProcessedEvent.event_id == event_id).limit(1)
                    ).first()
                    if already_processed:
                        event.status = EventStatus.COMPLETED
                        event.processed_at = now
                        session.commit()
                        processed_count += 1
                        continue

                    # PROCESSING stays uncommitted, so a crash leaves the event PENDING
                    event.status = EventStatus.PROCESSING
                    session.flush()

                    results = EventHandlerRegistry.dispatch(event_type, session, dict(event.payload))

                    handler_errors = [r for r in results if r["status"] == "error"]
                    if handler_errors:
                        error_messages = "; ".join(
                            f"{r['handler']}: {r['error']}" for r in handler_errors
                        )
                        raise RuntimeError(f"Handler errors: {error_messages}")

                    session.add(
                        ProcessedEvent(
                            event_id=event_id,
                            event_type=event_type,
                            handler_name=",".join(r["handler"] for r in results)
                            if results else "no_handlers",
                            processed_at=now,
                            expires_at=now + PROCESSED_EVENT_TTL,
                        )
                    )
                    event.status = EventStatus.COMPLETED
                    event.processed_at = now
                    session.commit()
                    processed_count += 1

                except Exception as exc:
                    session.rollback()
                    logger.exception(
                        "Failed to process event %s (type=%s)", event_id, event_type
                    )

                    event = session.get(EventOutbox, event_id)
                    event.retry_count += 1
                    event.last_error = str(exc)
                    event.status = (
                        EventStatus.FAILED
                        if event.retry_count >= event.max_retries
                        else EventStatus.PENDING
                    )
                    session.commit()
                    failed_count += 1

        return {"processed": processed_count, "failed": failed_count}

    def cleanup_expired(self) -> int:
        """Delete expired processed_events and old completed outbox events.

        Returns total number of rows deleted.
        """
        now = datetime.now(UTC)
        total_deleted = 0

        with Session(self.engine) as session:
            result = session.execute(
                delete(ProcessedEvent).where(ProcessedEvent.expires_at < now)
            )
            total_deleted += result.rowcount

            result = session.execute(
                delete(EventOutbox).where(
                    EventOutbox.status == EventStatus.COMPLETED,
                    EventOutbox.processed_at < now - COMPLETED_EVENT_RETENTION,
                )
            )
            total_deleted += result.rowcount

            session.commit()

        logger.info("Cleaned up %d expired event records", total_deleted)
        return total_deleted
