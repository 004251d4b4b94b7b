"""Read access to ``django.contrib.auth`` users."""

from __future__ import annotations

from typing import Any, Optional

from django.contrib.auth import get_user_model

from modules.core.repositories.interfaces import IRepository


class UserDjangoRepository(IRepository[Any]):
    """Concrete user repository backed by the configured auth user model."""

    def get_by_id(self, id: Any) -> Optional[Any]:
        """Return the active user with primary key ``id``, else ``None``."""
        try:
            return get_user_model().objects.filter(pk=id, is_active=True).first()
        except (TypeError, ValueError):
            return None

    def save(self, entity: Any) -> Any:
        entity.save()
        return entity
