"""Inventory service layer: the Inventory Ledger and catalog use cases.

``InventoryLedger`` owns every write to ``Product.quantity``:

- ``reserve`` is a conditional decrement in SQL; it either removes all the
  requested units or changes nothing.  Reaching zero does not unlist.
- ``release`` adds units back without an upper bound and relists the
  product, so an item that sold out reappears when a cancellation returns
  its stock.
- ``set_quantity`` overwrites the quantity (clamped at zero); setting zero
  unlists, setting a positive value leaves the listing flag alone.
- ``set_listed`` changes only the listing flag.

Mutations caused by an order carry the order id as ``reference``; the
stock-movement journal accepts each (reference, product, kind) once, so a
duplicated reserve or release is a no-op.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

import structlog
from django.db import transaction

from modules.inventory.constants import StockMovementKind
from modules.inventory.events import StockChanged
from modules.inventory.exceptions import InsufficientProductStock, ProductNotFound
from modules.inventory.models import Product
from modules.stores.exceptions import StoreNotFound
from shared.domain.exceptions import ValidationError

if TYPE_CHECKING:
    from modules.inventory.dtos import CreateProductDTO, InventoryPatchDTO
    from modules.inventory.repositories.interfaces import IProductRepository
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)

StockLine = Tuple[str, int]


def _merge_lines(lines: Iterable[StockLine]) -> Dict[str, int]:
    """Sum quantities per product, ordered by product id (lock order)."""
    merged: Dict[str, int] = {}
    for product_id, quantity in lines:
        merged[str(product_id)] = merged.get(str(product_id), 0) + quantity
    return dict(sorted(merged.items()))


class InventoryLedger:
    """Per-product stock bookkeeping.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Single-product operations
    # ------------------------------------------------------------------

    @transaction.atomic
    def reserve(
        self,
        product_id: str,
        quantity: int,
        *,
        reference: Optional[str] = None,
    ) -> Product:
        """Deduct ``quantity`` units.

        Raises:
            ValidationError: quantity is not positive.
            ProductNotFound: the product does not exist.
            InsufficientProductStock: fewer than ``quantity`` units left.
        """
        self._check_positive(quantity)
        log = logger.bind(product_id=str(product_id), quantity=quantity, reference=reference)
        product = self._get(product_id)

        if not self._repo.journal(product_id, StockMovementKind.RESERVE, -quantity, reference):
            return product

        if not self._repo.decrement_if_available(product_id, quantity):
            product.refresh_from_db(fields=["quantity", "is_listed"])
            log.warning("inventory.reserve_rejected", available=product.quantity)
            raise InsufficientProductStock(
                product_id,
                requested=quantity,
                available=product.quantity,
                name=product.name,
            )

        product.refresh_from_db(fields=["quantity", "is_listed", "updated_at"])
        log.info("inventory.reserved", remaining=product.quantity)
        return self._changed(product, StockMovementKind.RESERVE, reference)

    @transaction.atomic
    def release(
        self,
        product_id: str,
        quantity: int,
        *,
        reference: Optional[str] = None,
    ) -> Product:
        """Give ``quantity`` units back and relist the product.

        Raises:
            ValidationError: quantity is not positive.
            ProductNotFound: the product does not exist.
        """
        self._check_positive(quantity)
        product = self._get(product_id)

        if not self._repo.journal(product_id, StockMovementKind.RELEASE, quantity, reference):
            return product

        self._repo.increment(product_id, quantity)
        product.refresh_from_db(fields=["quantity", "is_listed", "updated_at"])
        logger.info(
            "inventory.released",
            product_id=str(product_id),
            quantity=quantity,
            reference=reference,
            restored_stock=product.quantity,
        )
        return self._changed(product, StockMovementKind.RELEASE, reference)

    @transaction.atomic
    def set_quantity(self, product_id: str, quantity: int) -> Product:
        """Overwrite the quantity, clamped at zero.  Zero forces unlisted."""
        product = self._repo.get_for_update(str(product_id))
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.", field="productId")

        new_quantity = max(0, int(quantity))
        delta = new_quantity - product.quantity
        product.quantity = new_quantity
        if new_quantity == 0:
            product.is_listed = False
        product.save(update_fields=["quantity", "is_listed"])

        if delta:
            self._repo.journal(product_id, StockMovementKind.ADJUST, delta, None)
        logger.info(
            "inventory.quantity_set",
            product_id=str(product_id),
            requested=quantity,
            quantity=new_quantity,
            is_listed=product.is_listed,
        )
        return self._changed(product, StockMovementKind.ADJUST, None)

    @transaction.atomic
    def set_listed(self, product_id: str, listed: bool) -> Product:
        product = self._repo.get_for_update(str(product_id))
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.", field="productId")
        if product.is_listed != listed:
            product.is_listed = listed
            product.save(update_fields=["is_listed"])
            logger.info("inventory.listing_set", product_id=str(product_id), is_listed=listed)
        return self._changed(product, "listing", None)

    # ------------------------------------------------------------------
    # Multi-product operations (all-or-nothing)
    # ------------------------------------------------------------------

    @transaction.atomic
    def reserve_many(
        self, lines: Iterable[StockLine], *, reference: Optional[str] = None
    ) -> List[Product]:
        """Reserve every line or none of them.

        Products are processed in id order to keep lock acquisition
        consistent between concurrent reservations.  The first failure
        propagates and rolls back the lines already reserved.
        """
        return [
            self.reserve(product_id, quantity, reference=reference)
            for product_id, quantity in _merge_lines(lines).items()
        ]

    @transaction.atomic
    def release_many(
        self, lines: Iterable[StockLine], *, reference: Optional[str] = None
    ) -> List[Product]:
        return [
            self.release(product_id, quantity, reference=reference)
            for product_id, quantity in _merge_lines(lines).items()
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_positive(quantity: int) -> None:
        if quantity is None or int(quantity) < 1:
            raise ValidationError(
                f"Quantity must be a positive integer, got {quantity}.", field="quantity"
            )

    def _get(self, product_id: str) -> Product:
        product = self._repo.get_by_id(str(product_id))
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.", field="productId")
        return product

    def _changed(self, product: Product, change: str, reference: Optional[str]) -> Product:
        product.add_domain_event(
            StockChanged(
                aggregate_id=product.id,
                store_id=str(product.store_id),
                change=change,
                quantity=product.quantity,
                is_listed=product.is_listed,
                reference=reference or "",
            )
        )
        self._repo.publish_events(product)
        return product


class ProductService:
    """Catalog use cases scoped to one store.

    Stock changes are delegated to ``InventoryLedger``.
    """

    def __init__(
        self,
        repository: IProductRepository,
        store_repository: IStoreRepository,
        ledger: Optional[InventoryLedger] = None,
    ) -> None:
        self._repo = repository
        self._store_repo = store_repository
        self._ledger = ledger or InventoryLedger(repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, store_id: str, dto: CreateProductDTO) -> Product:
        """Add a product to the store's catalog.

        Raises:
            StoreNotFound: the store does not exist.
        """
        store = self._get_store(store_id)
        product = Product(
            store=store,
            name=dto.name,
            description=dto.description,
            category=dto.category,
            original_price=dto.original_price,
            discount_price=dto.discount_price,
            quantity=dto.quantity,
            is_listed=dto.is_listed and dto.quantity > 0,
            expires_at=dto.expires_at,
        )
        product.add_domain_event(
            StockChanged(
                aggregate_id=product.id,
                store_id=str(store.id),
                change="created",
                quantity=product.quantity,
                is_listed=product.is_listed,
            )
        )
        product = self._repo.save(product)
        logger.info("product.created", product_id=str(product.id), store_id=str(store.id))
        return product

    @transaction.atomic
    def update_inventory(
        self, store_id: str, product_id: str, dto: InventoryPatchDTO
    ) -> Product:
        """Apply an inventory patch: listing flag first, then quantity.

        Raises:
            StoreNotFound, ProductNotFound
        """
        product = self.get_product(store_id, product_id)
        if dto.is_listed is not None:
            product = self._ledger.set_listed(product.id, dto.is_listed)
        if dto.quantity is not None:
            product = self._ledger.set_quantity(product.id, dto.quantity)
        return product

    def restock(self, store_id: str, product_id: str, delta: int) -> Product:
        """Manual restock; goes through ``release`` so the product relists."""
        product = self.get_product(store_id, product_id)
        return self._ledger.release(product.id, delta)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, store_id: str, filters: Optional[Dict[str, Any]] = None):
        self._get_store(store_id)
        return self._repo.list_for_store(store_id, filters)

    def get_product(self, store_id: str, product_id: str) -> Product:
        """Retrieve a product of the given store.

        Raises:
            StoreNotFound: the store does not exist.
            ProductNotFound: no such product in this store.
        """
        store = self._get_store(store_id)
        product = self._repo.get_by_id(product_id)
        if product is None or product.store_id != store.id:
            raise ProductNotFound(
                f"Product {product_id} not found in store {store_id}.", field="productId"
            )
        return product

    def _get_store(self, store_id: str):
        store = self._store_repo.get_by_id(store_id)
        if store is None:
            raise StoreNotFound(f"Store {store_id} not found.", field="storeId")
        return store
