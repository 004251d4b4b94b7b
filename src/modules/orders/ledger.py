"""Stock reservation ledger.

The only code path that moves product stock counters for orders.

``reserve`` applies every decrement inside one atomic block, items sorted
by product id so two orders sharing products always lock rows in the same
order.  Each decrement is a conditional ``UPDATE ... WHERE stock >= q``;
when one of them matches no row the block rolls back every earlier
decrement and ``InsufficientStock`` is raised.

``release`` returns the stock recorded by the order's ``active``
reservations and flips them to ``released`` under a row lock, so running
it again for the same order finds nothing left to release.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.exceptions import InsufficientStock
from modules.orders.models import ReservationStatus, StockReservation

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.pricing import PricedItem
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockLedger:
    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    def reserve(self, order: Order, items: Iterable[PricedItem]) -> List[StockReservation]:
        """Reserve stock for every item or for none of them."""
        log = logger.bind(order_id=str(order.id))
        reservations: List[StockReservation] = []

        with transaction.atomic():
            for item in sorted(items, key=lambda i: str(i.product_id)):
                if not self._product_repo.try_decrement_stock(
                    str(item.product_id), item.quantity
                ):
                    log.warning(
                        "ledger.reservation_failed",
                        product_id=str(item.product_id),
                        quantity=item.quantity,
                    )
                    raise InsufficientStock(
                        f"Product {item.product_id}: not enough stock for "
                        f"quantity {item.quantity}."
                    )
                reservations.append(
                    StockReservation(
                        order=order,
                        product_id=item.product_id,
                        quantity=item.quantity,
                    )
                )
            StockReservation.objects.bulk_create(reservations)

        log.info(
            "ledger.stock_reserved",
            items=[(str(r.product_id), r.quantity) for r in reservations],
        )
        return reservations

    def release(self, order: Order) -> int:
        """Release everything the order still holds; returns units released."""
        with transaction.atomic():
            active = list(
                StockReservation.objects.select_for_update()
                .filter(order_id=order.id, status=ReservationStatus.ACTIVE)
                .order_by("product_id")
            )
            for reservation in active:
                self._product_repo.increment_stock(
                    str(reservation.product_id), reservation.quantity
                )
            if active:
                StockReservation.objects.filter(
                    pk__in=[r.pk for r in active]
                ).update(
                    status=ReservationStatus.RELEASED,
                    released_at=timezone.now(),
                    updated_at=timezone.now(),
                )

        released = sum(r.quantity for r in active)
        logger.info(
            "ledger.stock_released",
            order_id=str(order.id),
            reservations=len(active),
            units=released,
        )
        return released

