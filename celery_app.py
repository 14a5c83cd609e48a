"""Celery worker and beat for BuildConnect's outbox delivery."""

from celery import Celery
from celery.schedules import crontab

from src.config import settings

OUTBOX_QUEUE = "marketplace-events"

celery = Celery(
    "buildconnect",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["src.modules.events.tasks"],
)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_default_queue=OUTBOX_QUEUE,
    task_routes={"src.modules.events.tasks.*": {"queue": OUTBOX_QUEUE}},
    # An outbox batch is only acknowledged once the worker has finished it
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=6 * 3600,
    broker_connection_retry_on_startup=True,
    broker_transport_options={"visibility_timeout": 3600, "retry_on_timeout": True},
)

celery.conf.beat_schedule = {
    "deliver-outbox-events": {
        "task": "src.modules.events.tasks.process_outbox",
        "schedule": float(settings.event_outbox_poll_seconds),
    },
    "prune-delivered-events": {
        "task": "src.modules.events.tasks.cleanup_processed_events",
        "schedule": crontab(hour=2, minute=15),
    },
}
