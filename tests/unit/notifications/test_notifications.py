"""Unit tests for the notification catalogue, dispatcher and order handler.

Covers:
- Every status that notifies has a bilingual message.
- ``notify`` stores the notification and never raises.
- Domain events reach the customer only after commit.
- A failing handler never breaks the request.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.notifications.dispatcher import notify
from modules.notifications.messages import ORDER_MESSAGES, render
from modules.notifications.models import Notification
from modules.orders.constants import STATUS_NOTIFICATION_KEYS, OrderStatus
from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.handlers import OrderNotificationHandler

pytestmark = pytest.mark.unit


class TestMessages:
    def test_every_notified_status_has_a_message(self):
        assert set(STATUS_NOTIFICATION_KEYS.values()) <= set(ORDER_MESSAGES)

    @pytest.mark.parametrize("key", sorted(ORDER_MESSAGES))
    def test_entries_are_bilingual(self, key):
        entry = ORDER_MESSAGES[key]
        assert set(entry["title"]) == {"en", "ar"}
        assert set(entry["message"]) == {"en", "ar"}

    def test_render_fills_order_number(self):
        title, message = render("order_shipped", order_number="ORD-1")
        assert title["en"] == "Order Shipped"
        assert "ORD-1" in message["en"]
        assert "ORD-1" in message["ar"]

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            render("order_teleported", order_number="ORD-1")


class TestNotify:
    def test_stores_notification(self, customer):
        notification = notify(
            customer.pk, {"en": "Hi", "ar": "مرحبا"}, {"en": "Body", "ar": "نص"}
        )

        assert notification is not None
        stored = Notification.objects.get(user=customer)
        assert stored.title["ar"] == "مرحبا"
        assert stored.data == {}
        assert stored.read is False

    def test_delivery_failure_is_swallowed(self, monkeypatch, customer):
        def explode(**kwargs):
            raise RuntimeError("database is gone")

        monkeypatch.setattr(Notification.objects, "create", explode)
        assert notify(customer.pk, {"en": "Hi"}, {"en": "Body"}) is None


class TestOrderNotificationHandler:
    def test_status_change_uses_status_message(self, customer):
        handler = OrderNotificationHandler()
        event = OrderStatusChanged(
            aggregate_id=uuid4(),
            customer_id=customer.pk,
            order_number="ORD-20260101-ABCDEF",
            status=OrderStatus.SHIPPED,
            old_status=OrderStatus.PROCESSING,
        )

        handler.handle(event)

        notification = Notification.objects.get(user=customer)
        assert notification.data["type"] == "order_shipped"
        assert notification.data["order_number"] == "ORD-20260101-ABCDEF"
        assert notification.data["status"] == "shipped"

    def test_event_without_customer_is_skipped(self):
        OrderNotificationHandler().handle(
            OrderCreated(aggregate_id=uuid4(), order_number="ORD-1")
        )
        assert not Notification.objects.exists()


class TestNotificationsAfterCommit:
    def test_creation_notifies_customer_on_commit(
        self, django_capture_on_commit_callbacks, place_order, customer, product_a
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            order = place_order((product_a, 1))

        assert len(callbacks) == 1
        notification = Notification.objects.get(user=customer)
        assert notification.data["type"] == "order_placed"
        assert notification.data["order_id"] == str(order.id)

    def test_nothing_is_sent_before_commit(self, place_order, product_a):
        place_order((product_a, 1))
        assert not Notification.objects.exists()

    def test_cancellation_notifies(
        self, django_capture_on_commit_callbacks, service, place_order, customer, product_a
    ):
        order = place_order((product_a, 1))
        with django_capture_on_commit_callbacks(execute=True):
            service.cancel_order(customer, str(order.id))

        assert Notification.objects.filter(
            user=customer, data__type="order_cancelled"
        ).exists()

    def test_failing_notification_does_not_undo_the_order(
        self, django_capture_on_commit_callbacks, monkeypatch, place_order, product_a
    ):
        def explode(*args, **kwargs):
            raise RuntimeError("smtp down")

        monkeypatch.setattr(OrderNotificationHandler, "handle", explode)
        with django_capture_on_commit_callbacks(execute=True):
            order = place_order((product_a, 2))

        product_a.refresh_from_db()
        assert order.status == OrderStatus.PENDING
        assert product_a.stock == 8
        assert not Notification.objects.exists()
