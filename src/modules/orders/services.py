"""Order service layer: the Order Lifecycle Coordinator.

Owns the order state machine and its coupling to the Inventory Ledger and
the pickup timer.  Every write runs inside ``transaction.atomic``; the
service defines the unit-of-work boundary.

Side effects per transition:

- ``pending -> accepted``: reserve stock for every line, all or nothing.
- ``pending -> rejected`` / ``pending -> cancelled``: no stock effect.
- ``accepted -> prepared``: the pickup window starts (``prepared_at``).
- ``accepted|prepared -> cancelled``: release the reservation once.
- ``prepared -> completed``: add the order to the store's daily sales.
  Completing after the window ran out is redirected to a ``cancelled``
  transition with reason ``expired``.

Requesting the status an order already has is a no-op, which absorbs
duplicated requests and concurrent timeout observers.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.inventory.exceptions import InsufficientProductStock
from modules.orders.constants import (
    ALLOWED_ACTORS,
    CANCELLATION_STATES,
    DEFAULT_CANCEL_REASON,
    EXPIRED_REASON,
    ORDER_ID_FORMAT,
    RESERVED_STATES,
    STATUS_TIMESTAMP_FIELDS,
    TIMEOUT_REASON,
    Actor,
    OrderStatus,
)
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    ActorNotAllowed,
    InvalidOrderTransition,
    OrderNotFound,
    StaleOrderVersion,
)
from modules.orders.timer import is_pickup_expired, overdue_cutoff
from modules.stores.exceptions import StoreNotFound
from shared.domain.exceptions import ConcurrencyConflict, InvalidTransition, ValidationError

if TYPE_CHECKING:
    from modules.inventory.repositories.interfaces import IProductRepository
    from modules.inventory.services import InventoryLedger
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the ledger via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        store_repository: IStoreRepository,
        product_repository: IProductRepository,
        ledger: InventoryLedger,
    ) -> None:
        self._order_repo = order_repository
        self._store_repo = store_repository
        self._product_repo = product_repository
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a ``pending`` order.

        Stock is checked, not reserved: reservation happens on accept.
        Names and unit prices are snapshotted from the catalog, and the
        client's ``total`` must match the computed one.

        Raises:
            StoreNotFound: the store does not exist.
            ValidationError: an item is unknown, from another store or
                unlisted, or the total does not match.
            InsufficientProductStock: an item has fewer units than requested.
        """
        log = logger.bind(store_id=str(dto.store_id), user_id=dto.user_id)
        log.info("order.creation_started", item_count=len(dto.items))

        store = self._store_repo.get_by_id(str(dto.store_id))
        if store is None:
            raise StoreNotFound(f"Store {dto.store_id} not found.", field="storeId")

        products = self._product_repo.get_many(str(item.product_id) for item in dto.items)
        lines = []
        for index, item in enumerate(dto.items):
            field = f"items.{index}.productId"
            product = products.get(str(item.product_id))
            if product is None or product.store_id != store.id:
                raise ValidationError(
                    f"Product {item.product_id} is not sold by store {store.store_code}.",
                    field=field,
                )
            if not product.is_listed:
                raise ValidationError(
                    f"Product '{product.name}' is not available.", field=field
                )
            if product.quantity < item.quantity:
                log.warning(
                    "order.creation_stock_short",
                    product_id=str(product.id),
                    requested=item.quantity,
                    available=product.quantity,
                )
                raise InsufficientProductStock(
                    product.id,
                    requested=item.quantity,
                    available=product.quantity,
                    name=product.name,
                    field=f"items.{index}.quantity",
                )
            lines.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "unit_price": product.discount_price,
                    "quantity": item.quantity,
                }
            )

        total = sum((line["unit_price"] * line["quantity"] for line in lines), start=0)
        if dto.total != total:
            raise ValidationError(
                f"Cart total {dto.total} does not match current prices ({total}).",
                field="total",
            )

        order_id = self._next_order_id(store)
        order = self._order_repo.create(
            {
                "id": order_id,
                "store_id": store.id,
                "user_id": dto.user_id,
                "total": total,
                "customer_info": dto.customer_info.model_dump(),
                "note": dto.note,
                "items": lines,
            }
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                store_id=str(store.id),
                user_id=order.user_id,
                status=order.status,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            actor=Actor.USER,
            notes="Order created",
        )

        log.info("order.created", order_id=order.id, total=str(total))
        return self._order_repo.get_by_id(order.id) or order

    def _next_order_id(self, store) -> str:
        date_str = timezone.localdate().strftime("%Y%m%d")
        seq = self._store_repo.next_order_sequence(store, date_str)
        return ORDER_ID_FORMAT.format(store_code=store.store_code, date=date_str, seq=seq)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @transaction.atomic
    def transition(
        self,
        order_id: str,
        target: str,
        *,
        actor: str,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """Move an order to *target* on behalf of *actor*.

        Raises:
            OrderNotFound: order does not exist.
            StaleOrderVersion: ``expected_version`` is not the stored one,
                or a concurrent writer won the race.
            InvalidOrderTransition: *target* is unreachable from the
                current status.
            ActorNotAllowed: *actor* may not request *target*.
            InsufficientProductStock: accepting would oversell an item.
        """
        order = self._lock(order_id)
        log = logger.bind(order_id=order.id, current_status=order.status, target=target)

        if order.status == target:
            log.info("order.transition_noop")
            return order

        if expected_version is not None and order.version != expected_version:
            log.warning(
                "order.stale_version", expected=expected_version, stored=order.version
            )
            raise StaleOrderVersion(
                f"Order {order.id} is at version {order.version}, "
                f"not {expected_version}.",
                field="expectedVersion",
            )

        if (
            target == OrderStatus.COMPLETED
            and order.status == OrderStatus.PREPARED
            and is_pickup_expired(order, now)
        ):
            log.warning("order.completion_after_expiry")
            return self._apply(
                order, OrderStatus.CANCELLED, actor=Actor.SYSTEM, reason=EXPIRED_REASON, now=now
            )

        if not order.can_transition_to(target):
            log.warning("order.invalid_transition")
            raise InvalidOrderTransition(order.id, order.status, target)

        if actor not in ALLOWED_ACTORS.get(target, set()):
            log.warning("order.actor_not_allowed", actor=actor)
            raise ActorNotAllowed(actor, target)

        return self._apply(order, target, actor=actor, reason=reason, now=now)

    def accept(self, order_id: str, *, actor: str = Actor.STORE) -> Order:
        return self.transition(order_id, OrderStatus.ACCEPTED, actor=actor)

    def reject(
        self, order_id: str, *, cancelled_by: str = Actor.STORE, reason: Optional[str] = None
    ) -> Order:
        return self.transition(
            order_id, OrderStatus.REJECTED, actor=cancelled_by, reason=reason
        )

    def prepare(self, order_id: str, *, actor: str = Actor.STORE) -> Order:
        return self.transition(order_id, OrderStatus.PREPARED, actor=actor)

    def complete(
        self, order_id: str, *, actor: str = Actor.STORE, now: Optional[datetime] = None
    ) -> Order:
        return self.transition(order_id, OrderStatus.COMPLETED, actor=actor, now=now)

    def cancel(
        self,
        order_id: str,
        *,
        cancelled_by: str,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Order:
        return self.transition(
            order_id,
            OrderStatus.CANCELLED,
            actor=cancelled_by,
            reason=reason,
            expected_version=expected_version,
        )

    def _apply(
        self,
        order: Order,
        target: str,
        *,
        actor: str,
        reason: Optional[str],
        now: Optional[datetime],
    ) -> Order:
        """Run the side effects of one legal transition and persist it.

        Caller holds the lock on *order*.  Any failure propagates and rolls
        back the whole transition, reservation included.
        """
        old_status = order.status
        log = logger.bind(order_id=order.id, old_status=old_status, new_status=target)
        lines = self._stock_lines(order)

        if target == OrderStatus.ACCEPTED:
            self._ledger.reserve_many(lines, reference=order.id)
        elif target in CANCELLATION_STATES and old_status in RESERVED_STATES:
            self._ledger.release_many(lines, reference=order.id)

        stamp = now or timezone.now()
        latest = order.latest_timestamp()
        if latest is not None and latest > stamp:
            stamp = latest

        changes: Dict[str, Any] = {
            "status": target,
            STATUS_TIMESTAMP_FIELDS[target]: stamp,
        }
        if target in CANCELLATION_STATES:
            changes["cancel_reason"] = reason or DEFAULT_CANCEL_REASON
            changes["cancelled_by"] = actor

        routing = {"store_id": str(order.store_id), "user_id": order.user_id, "status": target}
        order.add_domain_event(
            OrderStatusChanged(aggregate_id=order.id, old_status=old_status, **routing)
        )
        if target in CANCELLATION_STATES:
            order.add_domain_event(
                OrderCancelled(
                    aggregate_id=order.id,
                    cancelled_by=actor,
                    reason=changes["cancel_reason"],
                    **routing,
                )
            )

        if not self._order_repo.apply_transition(order, changes):
            raise StaleOrderVersion(
                f"Order {order.id} was modified concurrently; re-read and retry."
            )

        self._order_repo.add_history(
            order_id=order.id,
            status=target,
            actor=actor,
            notes=changes.get("cancel_reason", reason or ""),
            old_status=old_status,
        )

        if target == OrderStatus.COMPLETED:
            self._store_repo.record_sale(
                order.store_id,
                timezone.localdate(stamp),
                order.total,
                sum(quantity for _, quantity in lines),
            )

        log.info("order.transition_applied", actor=actor, version=order.version)
        return self._order_repo.get_by_id(order.id) or order

    def _stock_lines(self, order: Order) -> List[tuple[str, int]]:
        lines = []
        for item in order.items.all():
            if item.product_id is None:
                logger.warning(
                    "order.item_without_product",
                    order_id=order.id,
                    product_name=item.product_name,
                )
                continue
            lines.append((str(item.product_id), item.quantity))
        return lines

    # ------------------------------------------------------------------
    # Pickup timer
    # ------------------------------------------------------------------

    @transaction.atomic
    def expire_pickup(self, order_id: str, now: Optional[datetime] = None) -> Optional[Order]:
        """Cancel the order as ``system``/``timeout`` if its window ran out.

        Re-checks expiry under the lock, so an order completed or cancelled
        meanwhile is left alone.  Returns the cancelled order, or ``None``.
        """
        order = self._lock(order_id)
        if not is_pickup_expired(order, now):
            return None
        logger.info("order.pickup_expired", order_id=order.id, prepared_at=str(order.prepared_at))
        return self._apply(
            order, OrderStatus.CANCELLED, actor=Actor.SYSTEM, reason=TIMEOUT_REASON, now=now
        )

    def observe_order(self, order_id: str, now: Optional[datetime] = None) -> Order:
        """Fetch an order, applying the timeout cancellation if it is due."""
        order = self.get_order(order_id)
        if not is_pickup_expired(order, now):
            return order
        try:
            return self.expire_pickup(order_id, now) or self.get_order(order_id)
        except ConcurrencyConflict:
            logger.info("order.expiry_raced", order_id=order_id)
            return self.get_order(order_id)

    def observe_orders(
        self, orders: Iterable[Order], now: Optional[datetime] = None
    ) -> List[Order]:
        """``observe_order`` for a page of orders; only overdue ones are re-read."""
        return [
            self.observe_order(order.id, now) if is_pickup_expired(order, now) else order
            for order in orders
        ]

    def expire_overdue_pickups(self, now: Optional[datetime] = None) -> int:
        """Server-side sweep over every ``prepared`` order past its window.

        Each order is expired in its own transaction; an order that changed
        under the sweep is logged and skipped.
        """
        cancelled = 0
        for order_id in self._order_repo.overdue_pickup_ids(overdue_cutoff(now)):
            try:
                if self.expire_pickup(order_id, now) is not None:
                    cancelled += 1
            except (InvalidTransition, ConcurrencyConflict) as exc:
                logger.warning("order.expiry_skipped", order_id=order_id, error=str(exc))
        logger.info("order.expiry_sweep_completed", cancelled=cancelled)
        return cancelled

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.", field="id")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None):
        """Orders as a queryset, optionally filtered."""
        return self._order_repo.search(filters)

    def _lock(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.", field="id")
        return order


def build_order_service() -> OrderService:
    """Wire ``OrderService`` with the Django ORM repositories."""
    from modules.inventory.repositories.django_repository import ProductDjangoRepository
    from modules.inventory.services import InventoryLedger
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.stores.repositories.django_repository import StoreDjangoRepository

    products = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        store_repository=StoreDjangoRepository(),
        product_repository=products,
        ledger=InventoryLedger(products),
    )
