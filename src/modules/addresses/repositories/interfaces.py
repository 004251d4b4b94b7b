"""Address repository interface.

The order core only ever reads addresses; ownership is checked by the
caller against ``Address.user_id``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.addresses.models import Address


class IAddressRepository(IRepository["Address"]):
    """Repository contract for shipping addresses."""
