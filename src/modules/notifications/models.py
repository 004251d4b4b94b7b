"""In-app notification stored for a user.

``title`` and ``message`` hold ``{"en": ..., "ar": ...}`` objects so the
client can pick a language without another round trip.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Notification(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    title = models.JSONField(default=dict)
    message = models.JSONField(default=dict)
    data = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "read"], name="notifications_user_read_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.title.get('en', '')}"
