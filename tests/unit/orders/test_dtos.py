"""Unit tests for order DTOs and ``parse_dto``."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import CreateOrderDTO, OrderItemDTO, UpdateOrderDTO, parse_dto
from modules.orders.exceptions import InvalidInput, InvalidQuantity

pytestmark = pytest.mark.unit


class TestOrderItemDTO:
    def test_valid_item(self):
        product_id = uuid4()
        item = OrderItemDTO(product_id=product_id, quantity=2)
        assert item.product_id == product_id
        assert item.quantity == 2

    def test_is_frozen(self):
        item = OrderItemDTO(product_id=uuid4(), quantity=1)
        with pytest.raises(ValidationError):
            item.quantity = 5

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, quantity):
        with pytest.raises(ValidationError):
            OrderItemDTO(product_id=uuid4(), quantity=quantity)


class TestCreateOrderDTO:
    def test_defaults(self):
        dto = CreateOrderDTO(items=[OrderItemDTO(product_id=uuid4(), quantity=1)])
        assert dto.notes == ""
        assert dto.customer_id is None
        assert dto.shipping_cost is None
        assert dto.idempotency_key is None

    def test_rejects_empty_items(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(items=[])

    def test_rejects_duplicate_products(self):
        product_id = uuid4()
        with pytest.raises(ValidationError, match="Duplicate"):
            CreateOrderDTO(
                items=[
                    OrderItemDTO(product_id=product_id, quantity=1),
                    OrderItemDTO(product_id=product_id, quantity=2),
                ]
            )

    def test_rejects_negative_shipping_cost(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(
                items=[OrderItemDTO(product_id=uuid4(), quantity=1)],
                shipping_cost=Decimal("-0.01"),
            )


class TestUpdateOrderDTO:
    def test_everything_optional(self):
        dto = UpdateOrderDTO()
        assert dto.items is None
        assert dto.notes is None

    def test_items_when_given_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            UpdateOrderDTO(items=[])


class TestParseDto:
    def test_builds_dto(self):
        dto = parse_dto(UpdateOrderDTO, notes="leave at door")
        assert dto.notes == "leave at door"

    def test_quantity_errors_map_to_invalid_quantity(self):
        with pytest.raises(InvalidQuantity) as exc_info:
            parse_dto(OrderItemDTO, product_id=uuid4(), quantity=0)
        assert exc_info.value.message == "Quantity must be at least 1."

    def test_non_integer_quantity_maps_to_invalid_quantity(self):
        with pytest.raises(InvalidQuantity):
            parse_dto(OrderItemDTO, product_id=uuid4(), quantity="two")

    def test_other_errors_map_to_invalid_input(self):
        with pytest.raises(InvalidInput) as exc_info:
            parse_dto(CreateOrderDTO, items=[])
        assert exc_info.value.code == "invalid_input"
        assert not exc_info.value.message.startswith("Value error")

    def test_malformed_product_id(self):
        with pytest.raises(InvalidInput):
            parse_dto(OrderItemDTO, product_id="nope", quantity=1)
