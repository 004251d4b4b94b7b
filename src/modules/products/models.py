"""Product model as seen by the order core.

The catalog owns products; the order core reads them and moves the
``stock`` counter.  Rules kept at this layer:

- ``stock`` can never go negative (check constraint).
- ``sku`` is normalised to uppercase on save.
- ``price_per_unit`` is stored as the catalog wrote it (text).  It may be
  blank or unparsable; pricing rejects such products at order time.
- A product is orderable only when ``status`` is ``approved`` and
  ``is_allowed`` is set.
- ``owner`` is the seller listing the product; sellers read the orders
  that contain their products.
"""

from __future__ import annotations

import structlog
from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    DECLINED = "declined", "Declined"


class Product(SoftDeleteModel):
    """Catalog product with its stock counter."""

    sku = models.CharField(max_length=64, unique=True)
    name_en = models.CharField(max_length=255)
    name_ar = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    price_per_unit = models.CharField(max_length=32, blank=True, default="")
    stock = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.PENDING,
    )
    is_allowed = models.BooleanField(default=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    class Meta:
        db_table = "products"
        ordering = ["name_en"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Business helpers
    # ------------------------------------------------------------------

    @property
    def is_orderable(self) -> bool:
        return self.status == ProductStatus.APPROVED and self.is_allowed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name_en}"
