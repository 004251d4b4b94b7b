"""Pricing & validation of an order request.

``OrderPricingValidator`` resolves every requested product, checks that it
can be sold in the requested quantity and captures its unit price.  It is
read-only: stock is only re-checked and moved by ``StockLedger``.

Checks run per item in request order and fail fast:

1. the product exists (``ProductNotFound``);
2. it is approved and allowed (``ProductUnavailable``);
3. enough stock is on hand right now (``InsufficientStock``);
4. its catalog price is a finite number above zero (``InvalidPrice``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence

import structlog

from modules.orders.exceptions import (
    AddressNotFound,
    AddressNotOwned,
    InsufficientStock,
    InvalidAddress,
    InvalidInput,
    InvalidPrice,
    InvalidQuantity,
    ProductNotFound,
    ProductUnavailable,
)

if TYPE_CHECKING:
    from modules.addresses.models import Address
    from modules.addresses.repositories.interfaces import IAddressRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricedItem:
    product_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class PricedOrder:
    items: tuple[PricedItem, ...]
    subtotal: Decimal
    address: Optional[Address] = None


def parse_price(raw: Any) -> Decimal:
    """Parse a catalog price; raise ``InvalidPrice`` if it is unusable."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise InvalidPrice("Product price is missing.")
    try:
        price = Decimal(str(raw).strip())
    except InvalidOperation:
        raise InvalidPrice(f"Product price {raw!r} is not a number.") from None
    if not price.is_finite() or price <= 0:
        raise InvalidPrice(f"Product price {raw!r} must be greater than zero.")
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


class OrderPricingValidator:
    """Validate and price an order request against the catalog.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        product_repository: IProductRepository,
        address_repository: IAddressRepository,
    ) -> None:
        self._product_repo = product_repository
        self._address_repo = address_repository

    def validate(
        self,
        customer_id: int,
        items: Sequence[Any],
        address_id: Any,
        preserve_prices: Optional[Mapping[str, Decimal]] = None,
    ) -> PricedOrder:
        """Validate the whole request and return the priced order.

        ``items`` are objects exposing ``product_id`` and ``quantity``.
        ``preserve_prices`` maps product ids to unit prices captured
        earlier; those products keep their price instead of the catalog's.
        """
        self.check_items(items)
        address = self.validate_address(customer_id, address_id)
        priced = self.price_items(items, preserve_prices)
        return PricedOrder(
            items=priced.items, subtotal=priced.subtotal, address=address
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def check_items(self, items: Sequence[Any]) -> None:
        if not items:
            raise InvalidInput("Order must have at least one item.")
        seen: set[str] = set()
        for item in items:
            quantity = item.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                raise InvalidQuantity("Quantity must be a whole number.")
            if quantity <= 0:
                raise InvalidQuantity("Quantity must be at least 1.")
            product_id = str(item.product_id)
            if product_id in seen:
                raise InvalidInput(
                    "Duplicate product IDs are not allowed in the same order."
                )
            seen.add(product_id)

    def validate_address(self, customer_id: int, address_id: Any) -> Address:
        if not address_id:
            raise InvalidAddress("A shipping address is required.")
        address = self._address_repo.get_by_id(str(address_id))
        if address is None:
            raise AddressNotFound(f"Address {address_id} not found.")
        if address.user_id != customer_id:
            logger.warning(
                "pricing.address_not_owned",
                address_id=str(address_id),
                customer_id=customer_id,
            )
            raise AddressNotOwned()
        return address

    def price_items(
        self,
        items: Sequence[Any],
        preserve_prices: Optional[Mapping[str, Decimal]] = None,
    ) -> PricedOrder:
        self.check_items(items)
        preserve_prices = preserve_prices or {}
        products: Dict[str, Product] = self._product_repo.get_many(
            str(item.product_id) for item in items
        )

        priced = []
        for item in items:
            product_id = str(item.product_id)
            product = products.get(product_id)
            if product is None:
                raise ProductNotFound(f"Product {product_id} not found.")
            if not product.is_orderable:
                raise ProductUnavailable(f"Product {product.sku} is not available.")
            if item.quantity > product.stock:
                raise InsufficientStock(
                    f"Product {product.sku}: requested {item.quantity}, "
                    f"available {product.stock}."
                )
            if product_id in preserve_prices:
                unit_price = Decimal(preserve_prices[product_id])
            else:
                try:
                    unit_price = parse_price(product.price_per_unit)
                except InvalidPrice:
                    logger.warning(
                        "pricing.invalid_price",
                        product_id=product_id,
                        raw_price=product.price_per_unit,
                    )
                    raise
            priced.append(
                PricedItem(
                    product_id=product_id,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    line_total=unit_price * item.quantity,
                )
            )

        subtotal = sum((p.line_total for p in priced), Decimal("0.00"))
        return PricedOrder(items=tuple(priced), subtotal=subtotal)
