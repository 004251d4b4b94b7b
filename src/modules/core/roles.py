"""Actor roles as seen by the order core.

Identity lives in ``django.contrib.auth``; the order core only needs to
know which of four roles an authenticated user plays:

- ``admin``: superusers; the only role allowed to refund or hard-delete.
- ``staff``: marketplace employees (``is_staff``); drive fulfilment and
  place orders on behalf of customers.
- ``business``: sellers, members of the ``BUSINESS_GROUP`` group; shop
  like customers and also read the orders that contain their products.
- ``customer``: everybody else; acts only on their own orders.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import models


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    BUSINESS = "business", "Business"
    STAFF = "staff", "Staff"
    ADMIN = "admin", "Admin"


STAFF_ROLES: frozenset[str] = frozenset({Role.STAFF, Role.ADMIN})


def resolve_role(user: Any) -> str:
    if getattr(user, "is_superuser", False):
        return Role.ADMIN
    if getattr(user, "is_staff", False):
        return Role.STAFF
    groups = getattr(user, "groups", None)
    if groups is not None and groups.filter(name=settings.BUSINESS_GROUP).exists():
        return Role.BUSINESS
    return Role.CUSTOMER


def is_staff_role(user: Any) -> bool:
    return resolve_role(user) in STAFF_ROLES
