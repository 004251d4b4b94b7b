"""Django ORM implementation of the Address repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError

from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Address]:
        """Return ``None`` for non-existent or malformed IDs."""
        try:
            return Address.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Address) -> Address:
        entity.save()
        logger.info("address.saved", address_id=str(entity.id))
        return entity
