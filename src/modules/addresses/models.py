"""Shipping address owned by a user.

Address CRUD lives outside the order core; orders only read addresses
and keep a nullable reference once one is removed.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Address(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100, blank=True, default="")
    postal_code = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(max_length=100)

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.address_line1}, {self.city} ({self.country})"
