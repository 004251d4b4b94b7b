"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``OrderItemDTO``: a single ``(product_id, quantity)`` request line.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``UpdateOrderDTO``: input for editing an open order.

``parse_dto`` builds a DTO and turns pydantic validation failures into
the domain's ``InvalidInput`` family so every caller sees one error type.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from modules.orders.exceptions import InvalidInput, InvalidQuantity

D = TypeVar("D", bound=BaseModel)


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class OrderItemDTO(BaseModel):
    """Immutable DTO for a single order line in a request.

    ``unit_price`` is never accepted from the client; pricing resolves it
    from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


def _check_items(items: List[OrderItemDTO]) -> List[OrderItemDTO]:
    if not items:
        raise ValueError("Order must have at least one item.")
    product_ids = [item.product_id for item in items]
    if len(product_ids) != len(set(product_ids)):
        raise ValueError("Duplicate product IDs are not allowed in the same order.")
    return items


def _check_shipping_cost(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and (not v.is_finite() or v < 0):
        raise ValueError("Shipping cost must be a non-negative amount.")
    return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``customer_id`` is only honoured for staff placing an order on a
    customer's behalf; otherwise the caller is the customer.
    """

    model_config = ConfigDict(frozen=True)

    items: List[OrderItemDTO]
    shipping_address_id: Optional[UUID] = None
    customer_id: Optional[int] = None
    payment_method: Optional[str] = None
    notes: str = ""
    shipping_cost: Optional[Decimal] = None
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_be_valid(cls, v: List[OrderItemDTO]) -> List[OrderItemDTO]:
        return _check_items(v)

    @field_validator("shipping_cost")
    @classmethod
    def shipping_cost_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _check_shipping_cost(v)


class UpdateOrderDTO(BaseModel):
    """Immutable DTO for edits of an open order; ``None`` means unchanged.

    ``clear_shipping_address`` removes the address from the order.
    """

    model_config = ConfigDict(frozen=True)

    items: Optional[List[OrderItemDTO]] = None
    shipping_address_id: Optional[UUID] = None
    clear_shipping_address: bool = False
    notes: Optional[str] = None
    shipping_cost: Optional[Decimal] = None

    @field_validator("items")
    @classmethod
    def items_must_be_valid(
        cls, v: Optional[List[OrderItemDTO]]
    ) -> Optional[List[OrderItemDTO]]:
        return None if v is None else _check_items(v)

    @field_validator("shipping_cost")
    @classmethod
    def shipping_cost_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _check_shipping_cost(v)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def parse_dto(dto_class: Type[D], **data: Any) -> D:
    """Instantiate ``dto_class`` or raise ``InvalidInput``/``InvalidQuantity``."""
    try:
        return dto_class(**data)
    except ValidationError as exc:
        error = exc.errors()[0]
        message = str(error.get("msg", "Invalid input.")).removeprefix("Value error, ")
        if "quantity" in error.get("loc", ()):
            raise InvalidQuantity(message) from exc
        raise InvalidInput(message) from exc
