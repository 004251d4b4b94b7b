"""Best-effort notification dispatch.

``notify`` is called after an order change has already been committed,
so it must never fail the caller: any error is logged and dropped.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.db import transaction

from modules.notifications.messages import BilingualText
from modules.notifications.models import Notification

logger = structlog.get_logger(__name__)


def notify(
    user_id: int,
    title: BilingualText,
    message: BilingualText,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[Notification]:
    """Store an in-app notification for ``user_id``.

    Returns the created notification, or ``None`` when delivery failed.
    """
    log = logger.bind(user_id=user_id, title=title.get("en"))
    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                user_id=user_id,
                title=title,
                message=message,
                data=metadata or {},
            )
    except Exception:
        log.warning("notification.delivery_failed", exc_info=True)
        return None

    log.info("notification.delivered", notification_id=str(notification.id))
    return notification
