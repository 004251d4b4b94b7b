"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Concurrency
control on transitions and edits uses ``select_for_update()`` on the order
row; stock counters are handled by the ledger, never here.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Prefetch, QuerySet

from modules.orders.models import Order, OrderItem, OrderStatusLog
from modules.orders.pricing import PricedItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet[Order]:
        return (
            Order.objects.alive()
            .select_related("customer", "shipping_address")
            .prefetch_related("items__product", "status_log")
        )

    def get_by_id(self, id: str, customer_id: Optional[int] = None) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent, foreign or invalid IDs.
        """
        try:
            queryset = self._base_queryset().filter(id=id)
            if customer_id is not None:
                queryset = queryset.filter(customer_id=customer_id)
            return queryset.first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(
        self, id: str, customer_id: Optional[int] = None
    ) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Relations are loaded with separate queries so the lock only covers
        the ``orders`` row.
        """
        try:
            queryset = Order.objects.alive().select_for_update().filter(id=id)
            if customer_id is not None:
                queryset = queryset.filter(customer_id=customer_id)
            return queryset.prefetch_related("items__product", "status_log").first()
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._base_queryset().filter(idempotency_key=key).first()

    def list(self, customer_id: Optional[int] = None) -> QuerySet[Order]:
        queryset = self._base_queryset()
        if customer_id is not None:
            queryset = queryset.filter(customer_id=customer_id)
        return queryset

    def list_for_seller(self, owner_id: int) -> QuerySet[Order]:
        seller_items = OrderItem.objects.filter(
            product__owner_id=owner_id
        ).select_related("product")
        return (
            Order.objects.alive()
            .filter(items__product__owner_id=owner_id)
            .distinct()
            .select_related("customer")
            .prefetch_related(
                Prefetch("items", queryset=seller_items, to_attr="seller_items")
            )
        )

    def get_for_seller(self, id: str, owner_id: int) -> Optional[Order]:
        try:
            return self.list_for_seller(owner_id).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def replace_items(self, order: Order, items: Iterable[PricedItem]) -> List[OrderItem]:
        OrderItem.objects.filter(order=order).delete()
        created = []
        for position, item in enumerate(items):
            order_item = OrderItem(
                order=order,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                position=position,
            )
            order_item.save()
            created.append(order_item)
        logger.info("order.items_replaced", order_id=str(order.id), count=len(created))
        return created

    def add_status_log(
        self,
        order: Order,
        status: str,
        old_status: Optional[str] = None,
        actor_id: Optional[int] = None,
        note: str = "",
    ) -> OrderStatusLog:
        entry = OrderStatusLog(
            order=order,
            old_status=old_status,
            status=status,
            actor_id=actor_id,
            note=note,
        )
        entry.save()
        logger.info(
            "order.status_logged",
            order_id=str(order.id),
            old_status=old_status,
            new_status=status,
        )
        return entry

    @transaction.atomic
    def hard_delete(self, order: Order) -> None:
        order.hard_delete()
