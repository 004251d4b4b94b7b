"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Input serializers only check the shape
of the payload; quantities, emptiness and duplicates are business rules
reported by the domain with its own error codes.

Monetary fields are rendered in the base currency here; the view hands
the result to the currency presenter.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from rest_framework import serializers

from modules.orders.constants import STATUS_LABELS
from modules.orders.models import Order, OrderItem, OrderStatusLog

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class OrderItemInputSerializer(serializers.Serializer):
    """Validates a single item in an order request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    items = OrderItemInputSerializer(many=True)
    shipping_address_id = serializers.UUIDField(required=False, allow_null=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    payment_method = serializers.CharField(
        required=False, allow_blank=True, max_length=50
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    shipping_cost = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )


class UpdateOrderSerializer(serializers.Serializer):
    """Validates an edit of an open order; absent fields stay unchanged.

    ``shipping_address_id: null`` removes the address.
    """

    items = OrderItemInputSerializer(many=True, required=False)
    shipping_address_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    shipping_cost = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False
    )


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    note = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


def _status_display(status: str, lang: Optional[str]) -> Any:
    labels = STATUS_LABELS.get(status, {"en": status, "ar": status})
    if lang in labels:
        return labels[lang]
    return dict(labels)


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with the captured price."""

    product_sku = serializers.CharField(source="product.sku", read_only=True)
    product_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_sku",
            "product_name",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields

    def get_product_name(self, obj: OrderItem) -> dict[str, str]:
        return {"en": obj.product.name_en, "ar": obj.product.name_ar}


class StatusLogSerializer(serializers.ModelSerializer):
    """Read serializer for order status log entries."""

    actor_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderStatusLog
        fields = [
            "id",
            "old_status",
            "status",
            "actor_id",
            "note",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and status log.

    Pass ``lang`` in the context to render ``status_display`` in one
    language; without it both labels are returned.
    """

    customer_id = serializers.IntegerField(read_only=True)
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    shipping_address_id = serializers.UUIDField(read_only=True, allow_null=True)
    status_display = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)
    status_log = StatusLogSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "created_by_id",
            "status",
            "status_display",
            "items",
            "subtotal",
            "shipping_cost",
            "total",
            "shipping_address_id",
            "payment_method",
            "notes",
            "cancelled_reason",
            "status_log",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_status_display(self, obj: Order) -> Any:
        return _status_display(obj.status, self.context.get("lang"))


class OrderListSerializer(OrderSerializer):
    """Lighter serializer for order lists (no status log)."""

    status_log = None

    class Meta(OrderSerializer.Meta):
        fields = [f for f in OrderSerializer.Meta.fields if f != "status_log"]
        read_only_fields = fields


class SellerOrderSerializer(serializers.ModelSerializer):
    """Seller's view of an order: only their lines, no shipping cost.

    Expects ``seller_items`` on the instance (see ``list_for_seller``);
    ``subtotal`` and ``total`` cover those lines only.
    """

    customer = serializers.SerializerMethodField()
    status_display = serializers.SerializerMethodField()
    items = OrderItemSerializer(source="seller_items", many=True, read_only=True)
    subtotal = serializers.SerializerMethodField()
    total = serializers.SerializerMethodField()
    shipping_address_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "status",
            "status_display",
            "items",
            "subtotal",
            "total",
            "shipping_address_id",
            "payment_method",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_customer(self, obj: Order) -> dict[str, Any]:
        return {
            "id": obj.customer_id,
            "username": obj.customer.username,
            "email": obj.customer.email,
        }

    def get_status_display(self, obj: Order) -> Any:
        return _status_display(obj.status, self.context.get("lang"))

    def get_subtotal(self, obj: Order) -> str:
        return str(sum((item.line_total for item in obj.seller_items), Decimal("0.00")))

    def get_total(self, obj: Order) -> str:
        return self.get_subtotal(obj)
