"""Celery tasks for the orders module."""

import structlog
from celery import shared_task

from modules.orders.services import build_order_service

logger = structlog.get_logger(__name__)


@shared_task(name="orders.expire_overdue_pickups")
def expire_overdue_pickups():
    """Cancel every prepared order whose pickup window has run out."""
    cancelled = build_order_service().expire_overdue_pickups()
    return {"cancelled": cancelled}
