"""Order repository interface.

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: row-locked look-ups, item replacement, status-log appends and
idempotency-key look-up.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderItem, OrderStatusLog
    from modules.orders.pricing import PricedItem


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and OrderStatusLog
    records.  Mutations must be atomic.
    """

    @abstractmethod
    def get_by_id(self, id: str, customer_id: Optional[int] = None) -> Optional[Order]:
        """Retrieve a live order with prefetched items and status log.

        With ``customer_id`` the order is only returned if it belongs to
        that customer.
        """

    @abstractmethod
    def get_for_update(
        self, id: str, customer_id: Optional[int] = None
    ) -> Optional[Order]:
        """Like ``get_by_id`` but holding a row-level lock on the order."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def list(self, customer_id: Optional[int] = None) -> QuerySet[Order]:
        """Live orders, optionally restricted to one customer."""

    @abstractmethod
    def list_for_seller(self, owner_id: int) -> QuerySet[Order]:
        """Live orders containing a product owned by ``owner_id``.

        Each order carries only that seller's lines in ``seller_items``.
        """

    @abstractmethod
    def get_for_seller(self, id: str, owner_id: int) -> Optional[Order]:
        """One order from ``list_for_seller``, or ``None``."""

    @abstractmethod
    def replace_items(self, order: Order, items: Iterable[PricedItem]) -> List[OrderItem]:
        """Replace the order's line items with ``items`` (in request order)."""

    @abstractmethod
    def add_status_log(
        self,
        order: Order,
        status: str,
        old_status: Optional[str] = None,
        actor_id: Optional[int] = None,
        note: str = "",
    ) -> OrderStatusLog:
        """Append one entry to the order's status log."""

    @abstractmethod
    def hard_delete(self, order: Order) -> None:
        """Physically remove the order with its items, log and reservations."""
