"""
Notification Repository.

Append-only writes to the ``admin_notifications`` table.
"""

from __future__ import annotations

from portal.models.activity import AdminNotification
from portal.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository):
    """Data access layer for admin dashboard notifications."""

    TABLE = "admin_notifications"

    def insert(self, notification: AdminNotification) -> None:
        data = notification.model_dump(mode="json", exclude_none=True)
        self._execute(
            lambda: self.supabase.table(self.TABLE).insert(data).execute(),
            operation_name="insert (admin_notifications)",
        )
