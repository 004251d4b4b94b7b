"""Product repository interface.

Extends ``IRepository[Product]`` with the bulk look-up used by pricing
and the two conditional counter operations the stock ledger relies on.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_many(self, ids: Iterable[str]) -> Dict[str, "Product"]:
        """Return live products keyed by ``str(id)``; unknown ids are absent."""

    @abstractmethod
    def try_decrement_stock(self, id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if at least that much is on hand.

        Returns ``False`` (and changes nothing) when the counter is short.
        """

    @abstractmethod
    def increment_stock(self, id: str, quantity: int) -> None:
        """Atomically add ``quantity`` back to the counter."""
