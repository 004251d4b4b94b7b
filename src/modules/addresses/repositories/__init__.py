"""Address repositories package."""

from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.repositories.interfaces import IAddressRepository

__all__ = ["IAddressRepository", "AddressDjangoRepository"]
