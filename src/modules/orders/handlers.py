"""Event handlers for Orders domain events.

Handlers run after the originating transaction committed and turn each
customer-visible change into an in-app notification.
"""

from __future__ import annotations

from typing import Optional

import structlog

from modules.notifications.dispatcher import notify
from modules.notifications.messages import render
from modules.orders.constants import STATUS_NOTIFICATION_KEYS
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderEvent,
    OrderStatusChanged,
    OrderUpdated,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderNotificationHandler(IEventHandler[OrderEvent]):
    def message_key(self, event: OrderEvent) -> Optional[str]:
        if isinstance(event, OrderCreated):
            return "order_placed"
        if isinstance(event, OrderUpdated):
            return "order_updated"
        if isinstance(event, OrderCancelled):
            return "order_cancelled"
        if isinstance(event, OrderStatusChanged):
            return STATUS_NOTIFICATION_KEYS.get(event.status)
        return None

    def handle(self, event: OrderEvent) -> None:
        key = self.message_key(event)
        if key is None or event.customer_id is None:
            logger.info(
                "order.notification_skipped",
                order_id=str(event.aggregate_id),
                event_name=event.event_name,
            )
            return
        title, message = render(key, order_number=event.order_number)
        notify(
            event.customer_id,
            title,
            message,
            {
                "type": key,
                "order_id": str(event.aggregate_id),
                "order_number": event.order_number,
                "status": event.status,
            },
        )


order_notification_handler = OrderNotificationHandler()
