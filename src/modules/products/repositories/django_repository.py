"""Django ORM implementation of the Product repository.

Stock counters are only ever changed with single conditional ``UPDATE``
statements built on ``F()`` expressions, so two requests racing for the
last units are serialised by the database row itself.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: Iterable[str]) -> Dict[str, Product]:
        try:
            products = Product.objects.alive().filter(id__in=list(ids))
            return {str(product.id): product for product in products}
        except (ValueError, ValidationError):
            return {}

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    # ------------------------------------------------------------------
    # Stock counter
    # ------------------------------------------------------------------

    def try_decrement_stock(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(id=id, stock__gte=quantity).update(
            stock=F("stock") - quantity, updated_at=timezone.now()
        )
        return updated == 1

    def increment_stock(self, id: str, quantity: int) -> None:
        Product.objects.filter(id=id).update(
            stock=F("stock") + quantity, updated_at=timezone.now()
        )
