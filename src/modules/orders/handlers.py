"""Event handlers for Orders domain events.

Handlers treat events as hints: they re-read the order and act on the
stored state, so duplicated or reordered deliveries are harmless.
"""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.repositories.django_repository import OrderDjangoRepository
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class _OrderEventHandler:
    log_event = "order.change_observed"

    def __init__(self, repository=None) -> None:
        self._repo = repository or OrderDjangoRepository()

    def handle(self, event) -> None:
        order = self._repo.get_by_id(event.aggregate_id)
        if order is None:
            logger.warning("order.event_for_unknown_order", order_id=event.aggregate_id)
            return
        logger.info(
            self.log_event,
            order_id=order.id,
            event_name=event.event_name,
            status=order.status,
            version=order.version,
        )


class OrderCreatedHandler(_OrderEventHandler, IEventHandler[OrderCreated]):
    log_event = "order.creation_observed"


class OrderCancelledHandler(_OrderEventHandler, IEventHandler[OrderCancelled]):
    log_event = "order.cancellation_observed"

    def handle(self, event: OrderCancelled) -> None:
        super().handle(event)
        if event.cancelled_by == "system":
            logger.info(
                "order.system_cancellation",
                order_id=event.aggregate_id,
                reason=event.reason,
            )


class OrderStatusChangedHandler(_OrderEventHandler, IEventHandler[OrderStatusChanged]):
    log_event = "order.status_change_observed"


order_created_handler = OrderCreatedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
