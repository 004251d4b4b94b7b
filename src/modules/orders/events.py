"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderEvent(DomainEvent):
    customer_id: Optional[int] = None
    order_number: str = ""
    status: str = ""


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """Raised when an order is created."""


@dataclass(frozen=True)
class OrderUpdated(OrderEvent):
    """Raised when items, address or notes of an open order change."""


@dataclass(frozen=True)
class OrderCancelled(OrderEvent):
    """Raised when an order is cancelled."""


@dataclass(frozen=True)
class OrderStatusChanged(OrderEvent):
    """Raised when an order status changes."""

    old_status: Optional[str] = None
