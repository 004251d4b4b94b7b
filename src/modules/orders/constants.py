"""Order domain constants.

Defines the canonical status vocabulary, the state machine graph and the
bilingual labels rendered at the API boundary.  Statuses are stored as
lowercase strings; localized text is never persisted.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.REFUNDED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

# Items, address and notes may change only here
EDITABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# Stock is still held by the order in these states
STOCK_HELD_STATES: set[str] = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
}

STATUS_LABELS: dict[str, dict[str, str]] = {
    OrderStatus.PENDING: {"en": "Pending", "ar": "قيد الانتظار"},
    OrderStatus.CONFIRMED: {"en": "Confirmed", "ar": "تم التأكيد"},
    OrderStatus.PROCESSING: {"en": "Processing", "ar": "قيد التجهيز"},
    OrderStatus.SHIPPED: {"en": "Shipped", "ar": "تم الشحن"},
    OrderStatus.DELIVERED: {"en": "Delivered", "ar": "تم التوصيل"},
    OrderStatus.CANCELLED: {"en": "Cancelled", "ar": "ملغي"},
    OrderStatus.REFUNDED: {"en": "Refunded", "ar": "تم الاسترداد"},
}

SUPPORTED_LANGUAGES = ("en", "ar")

# Notification catalogue key per status reached
STATUS_NOTIFICATION_KEYS: dict[str, str] = {
    OrderStatus.CONFIRMED: "order_confirmed",
    OrderStatus.PROCESSING: "order_processing",
    OrderStatus.SHIPPED: "order_shipped",
    OrderStatus.DELIVERED: "order_delivered",
    OrderStatus.CANCELLED: "order_cancelled",
    OrderStatus.REFUNDED: "order_refunded",
}


class PaymentMethod:
    CASH_ON_DELIVERY = "cash_on_delivery"
    ADMIN_CREATED = "admin_created"


ORDER_NUMBER_MAX_RETRIES = 5
