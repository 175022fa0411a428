"""Integration tests: committed order changes reach the outbox and the bus."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.events import OrderCancelled, OrderStatusChanged
from modules.sync.broadcaster import broadcaster
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def order(place_order, make_product):
    return place_order([(make_product(quantity=5), 1)])


@pytest.fixture()
def listener():
    handler = MagicMock()
    event_bus.subscribe(OrderStatusChanged, handler)
    event_bus.subscribe(OrderCancelled, handler)
    yield handler
    event_bus.unsubscribe(OrderStatusChanged, handler)
    event_bus.unsubscribe(OrderCancelled, handler)


class TestOutboxDelivery:
    def test_transition_is_published_after_commit(
        self, auth_client, order, listener, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = auth_client.patch(
                f"{URL}{order.id}/", {"status": "accepted"}, format="json"
            )

        assert response.status_code == 200
        published = [call.args[0] for call in listener.handle.call_args_list]
        assert [event.event_name for event in published] == ["OrderStatusChanged"]
        assert published[0].aggregate_id == order.id
        assert published[0].old_status == "pending"

        row = OutboxEvent.objects.get(aggregate_id=order.id, event_type="OrderStatusChanged")
        assert row.status == EventStatus.PUBLISHED
        assert broadcaster.revision(f"order:{order.id}") == 1
        assert broadcaster.revision(f"user:{order.user_id}") == 1

    def test_failed_transition_publishes_nothing(
        self, auth_client, order, listener, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            response = auth_client.patch(
                f"{URL}{order.id}/", {"status": "completed"}, format="json"
            )

        assert response.status_code == 400
        assert callbacks == []
        listener.handle.assert_not_called()
        assert not OutboxEvent.objects.filter(event_type="OrderStatusChanged").exists()

    def test_cancellation_publishes_both_events(
        self, auth_client, order, listener, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            auth_client.post(f"{URL}{order.id}/cancel/", {"cancelledBy": "store"}, format="json")

        names = [call.args[0].event_name for call in listener.handle.call_args_list]
        assert names == ["OrderStatusChanged", "OrderCancelled"]
        assert listener.handle.call_args_list[1].args[0].cancelled_by == "store"
