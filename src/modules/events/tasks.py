"""Beat-driven delivery of outbox events to their in-process handlers."""

import logging

from sqlalchemy.exc import OperationalError

from celery_app import celery
from src.modules.events.outbox_processor import OutboxProcessor
from src.modules.notification.handlers import register_handlers

logger = logging.getLogger(__name__)

register_handlers()


@celery.task(
    name="src.modules.events.tasks.process_outbox",
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    max_retries=3,
)
def process_outbox() -> dict:
    result = OutboxProcessor().process_batch()
    if result["processed"] or result["failed"]:
        logger.info(
            "Outbox batch: %d delivered, %d failed", result["processed"], result["failed"]
        )
    return result


@celery.task(name="src.modules.events.tasks.cleanup_processed_events")
def cleanup_processed_events() -> int:
    """Drop idempotency rows past their TTL and long-completed outbox rows."""
    deleted = OutboxProcessor().cleanup_expired()
    logger.info("Outbox cleanup removed %d rows", deleted)
    return deleted
