"""Celery tasks for the core module."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task(name="core.debug_task")
def debug_task():
    """Diagnostic task used to check that the worker is reachable."""
    logger.info("debug_task.executed", status="ok")
    return {"status": "ok", "message": "Celery is working"}
