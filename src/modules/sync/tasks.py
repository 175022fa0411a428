"""Celery tasks for the sync module."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.models import OutboxEvent
from modules.sync.broadcaster import broadcaster

logger = structlog.get_logger(__name__)


@shared_task(name="sync.relay_outbox_events")
def relay_outbox_events(batch_size=None):
    """Republish outbox rows whose on-commit delivery did not happen."""
    batch_size = batch_size or settings.OUTBOX_RELAY_BATCH_SIZE
    published = failed = 0
    rows = OutboxEvent.objects.relayable().order_by("retry_count", "id")
    for row in rows[:batch_size]:
        try:
            broadcaster.relay(row)
        except Exception as exc:
            row.mark_as_failed(str(exc))
            logger.warning(
                "sync.relay_failed",
                outbox_id=str(row.id),
                event_type=row.event_type,
                retry_count=row.retry_count,
                error=str(exc),
            )
            failed += 1
        else:
            published += 1

    if published or failed:
        logger.info("sync.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
