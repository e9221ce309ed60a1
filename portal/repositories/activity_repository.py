"""
Activity Repository.

Append-only writes to the ``portal_activities`` table.
"""

from __future__ import annotations

from portal.models.activity import PortalActivity
from portal.repositories.base_repository import BaseRepository


class ActivityRepository(BaseRepository):
    """Data access layer for portal activity entries."""

    TABLE = "portal_activities"

    def insert(self, activity: PortalActivity) -> None:
        data = activity.model_dump(mode="json", exclude_none=True)
        self._execute(
            lambda: self.supabase.table(self.TABLE).insert(data).execute(),
            operation_name="insert (portal_activities)",
        )
