"""Order domain exceptions.

Raised by the pricing validator, the stock ledger and the service layer
when a business rule is violated.  Each carries the stable ``code`` the
API answers with; ``modules.core.exceptions.DomainExceptionHandler``
translates them into HTTP responses.
"""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError

# ---------------------------------------------------------------------------
# Input validation (400)
# ---------------------------------------------------------------------------


class InvalidInput(DomainError):
    """The order request is malformed."""

    code = "invalid_input"


class InvalidAddress(InvalidInput):
    """The shipping address is invalid."""

    code = "invalid_address"


class InvalidQuantity(InvalidInput):
    """Item quantities must be positive integers."""

    code = "invalid_quantity"


class InvalidPrice(DomainError):
    """The product has no usable catalog price."""

    code = "invalid_price"


# ---------------------------------------------------------------------------
# Authorization (403)
# ---------------------------------------------------------------------------


class Forbidden(DomainError):
    """You are not allowed to perform this operation."""

    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class AddressNotOwned(DomainError):
    """The shipping address does not belong to the customer."""

    code = "address_not_owned"
    status_code = status.HTTP_403_FORBIDDEN


# ---------------------------------------------------------------------------
# Not found (404)
# ---------------------------------------------------------------------------


class OrderNotFound(DomainError):
    """The requested order does not exist."""

    code = "order_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ProductNotFound(DomainError):
    """A product referenced by an order item does not exist."""

    code = "product_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AddressNotFound(DomainError):
    """The shipping address does not exist."""

    code = "address_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class CustomerNotFound(DomainError):
    """The customer referenced by the order does not exist."""

    code = "customer_not_found"
    status_code = status.HTTP_404_NOT_FOUND


# ---------------------------------------------------------------------------
# Business-rule conflicts
# ---------------------------------------------------------------------------


class ProductUnavailable(DomainError):
    """A product is not approved or not allowed for sale."""

    code = "product_unavailable"


class InsufficientStock(DomainError):
    """Not enough stock to fulfil the order."""

    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransition(DomainError):
    """The requested status transition is not allowed."""

    code = "invalid_transition"


class OrderNotEditable(DomainError):
    """The order can no longer be updated."""

    code = "order_cannot_be_updated"


class OrderNotCancellable(DomainError):
    """The order can no longer be cancelled."""

    code = "order_not_cancellable"
