"""Event handlers for Inventory domain events."""

from __future__ import annotations

import structlog

from modules.inventory.events import StockChanged
from modules.inventory.repositories.django_repository import ProductDjangoRepository
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class StockChangedHandler(IEventHandler[StockChanged]):
    """Re-reads the product; the event payload is only a hint."""

    def __init__(self, repository=None) -> None:
        self._repo = repository or ProductDjangoRepository()

    def handle(self, event: StockChanged) -> None:
        product = self._repo.get_by_id(event.aggregate_id)
        if product is None:
            logger.warning("inventory.change_for_unknown_product", product_id=event.aggregate_id)
            return
        logger.info(
            "inventory.change_observed",
            product_id=str(product.id),
            store_id=str(product.store_id),
            change=event.change,
            quantity=product.quantity,
            is_listed=product.is_listed,
        )


stock_changed_handler = StockChangedHandler()
