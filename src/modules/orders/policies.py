"""Capability policy for order operations.

One table states which roles may perform each operation and whether the
role is limited to the caller's own orders.  ``OWN_ITEMS`` limits a seller
to orders that contain one of their products, showing only those lines.  Status preconditions
(editable, cancellable, legal transition) are checked by the service.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from modules.core.roles import Role, resolve_role
from modules.orders.exceptions import Forbidden

logger = structlog.get_logger(__name__)

OWN = "own"
OWN_ITEMS = "own_items"
ANY = "any"


class Capability:
    CREATE = "create"
    CREATE_FOR_CUSTOMER = "create_for_customer"
    VIEW = "view"
    VIEW_SALES = "view_sales"
    EDIT = "edit"
    SET_SHIPPING_COST = "set_shipping_cost"
    CANCEL = "cancel"
    TRANSITION = "transition"
    REFUND = "refund"
    DELETE = "delete"


POLICY: dict[str, dict[str, str]] = {
    Capability.CREATE: {
        Role.CUSTOMER: OWN, Role.BUSINESS: OWN, Role.STAFF: ANY, Role.ADMIN: ANY
    },
    Capability.CREATE_FOR_CUSTOMER: {Role.STAFF: ANY, Role.ADMIN: ANY},
    Capability.VIEW: {
        Role.CUSTOMER: OWN, Role.BUSINESS: OWN, Role.STAFF: ANY, Role.ADMIN: ANY
    },
    Capability.VIEW_SALES: {Role.BUSINESS: OWN_ITEMS},
    Capability.EDIT: {
        Role.CUSTOMER: OWN, Role.BUSINESS: OWN, Role.STAFF: ANY, Role.ADMIN: ANY
    },
    Capability.SET_SHIPPING_COST: {Role.STAFF: ANY, Role.ADMIN: ANY},
    Capability.CANCEL: {
        Role.CUSTOMER: OWN, Role.BUSINESS: OWN, Role.STAFF: ANY, Role.ADMIN: ANY
    },
    Capability.TRANSITION: {Role.STAFF: ANY, Role.ADMIN: ANY},
    Capability.REFUND: {Role.ADMIN: ANY},
    Capability.DELETE: {Role.ADMIN: ANY},
}


def is_allowed(actor: Any, capability: str, owner_id: Optional[int] = None) -> bool:
    """Return whether ``actor`` holds ``capability``.

    ``owner_id`` is the customer of the target order, when there is one.
    """
    scope = POLICY.get(capability, {}).get(resolve_role(actor))
    if scope is None:
        return False
    if scope == OWN and owner_id is not None:
        return owner_id == actor.pk
    return True


def authorize(actor: Any, capability: str, owner_id: Optional[int] = None) -> None:
    if not is_allowed(actor, capability, owner_id):
        logger.warning(
            "order.forbidden",
            actor_id=getattr(actor, "pk", None),
            role=resolve_role(actor),
            capability=capability,
        )
        raise Forbidden()


def sees_all_orders(actor: Any) -> bool:
    return POLICY[Capability.VIEW].get(resolve_role(actor)) == ANY
