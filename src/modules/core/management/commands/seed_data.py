from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.inventory.models import Product
from modules.orders.constants import Actor
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, CustomerInfoDTO
from modules.orders.services import build_order_service
from modules.stores.models import Store
from shared.domain.exceptions import InsufficientStock


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        stores = self._seed_stores()
        products = self._seed_products(stores)
        orders_created = self._seed_orders(stores, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"stores={len(stores)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        for username, password, staff in (
            ("admin", "admin123", True),
            ("store", "store123", True),
            ("student", "student123", False),
        ):
            if User.objects.filter(username=username).exists():
                continue
            if username == "admin":
                User.objects.create_superuser(username, password=password)
            else:
                User.objects.create_user(username, password=password, is_staff=staff)
            created += 1
        return created

    def _seed_stores(self) -> list[Store]:
        self.stdout.write("Creating stores...")
        stores = []
        for name, location in (
            ("Student Center Deli", "Student Center 1F"),
            ("Library Bakery", "Main Library B1"),
            ("Dorm Convenience", "Dormitory 7"),
        ):
            store = Store.objects.filter(name=name).first()
            if store is None:
                store = Store(name=name, location=location)
                store.save()
            stores.append(store)
        self.stdout.write(self.style.SUCCESS("Creating stores... Done!"))
        return stores

    def _seed_products(self, stores: list[Store]) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Chicken Bento", "Meals", Decimal("95.00"), Decimal("60.00")),
            ("Tuna Rice Ball", "Meals", Decimal("35.00"), Decimal("20.00")),
            ("Egg Sandwich", "Meals", Decimal("45.00"), Decimal("25.00")),
            ("Croissant", "Bakery", Decimal("40.00"), Decimal("20.00")),
            ("Melon Bun", "Bakery", Decimal("30.00"), Decimal("15.00")),
            ("Fresh Milk 946ml", "Drinks", Decimal("90.00"), Decimal("55.00")),
            ("Fruit Salad", "Fresh", Decimal("70.00"), Decimal("40.00")),
        ]
        products: list[Product] = []
        now = timezone.now()
        for store in stores:
            for name, category, original, discount in random.sample(catalog, k=4):
                product, _ = Product.objects.get_or_create(
                    store=store,
                    name=name,
                    defaults={
                        "category": category,
                        "original_price": original,
                        "discount_price": discount,
                        "quantity": random.randint(0, 12),
                        "expires_at": now + timedelta(hours=random.randint(2, 30)),
                    },
                )
                if product.quantity == 0 and product.is_listed:
                    product.is_listed = False
                    product.save(update_fields=["is_listed"])
                products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, stores: list[Store], count: int) -> int:
        """Create orders through the lifecycle so stock stays consistent."""
        self.stdout.write("Creating orders...")
        service = build_order_service()
        created = 0
        for i in range(count):
            store = random.choice(stores)
            available = list(
                Product.objects.filter(store=store, is_listed=True, quantity__gt=0)
            )
            if not available:
                continue
            picked = random.sample(available, k=min(len(available), random.randint(1, 2)))
            items = [CreateOrderItemDTO(product_id=p.id, quantity=1) for p in picked]
            order = service.create_order(
                CreateOrderDTO(
                    store_id=store.id,
                    user_id=f"student-{i % 5 + 1}",
                    items=items,
                    total=sum((p.discount_price for p in picked), Decimal("0.00")),
                    customer_info=CustomerInfoDTO(name=f"Student {i % 5 + 1}"),
                )
            )
            created += 1

            roll = random.random()
            if roll < 0.2:
                continue
            if roll < 0.3:
                service.reject(order.id, reason="Sold out at the counter")
                continue
            try:
                service.accept(order.id)
            except InsufficientStock:
                continue
            if roll < 0.45:
                service.cancel(order.id, cancelled_by=Actor.USER, reason="Changed my mind")
                continue
            service.prepare(order.id)
            if roll < 0.75:
                service.complete(order.id)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
