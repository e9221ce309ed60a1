"""
Portal Activity Service.

Records citizen-visible actions (password changes, profile edits,
sign-ins) in the ``portal_activities`` table.  Best effort: a failed
write is logged and never interrupts the action being recorded.
"""

from __future__ import annotations

from datetime import datetime, timezone

from portal.logger import StructuredLogger
from portal.models.activity import ActivityType, PortalActivity
from portal.repositories.activity_repository import ActivityRepository
from portal.services.base_service import BaseService


class ActivityService(BaseService):
    """Append-only writer for the citizen activity feed."""

    def __init__(
        self, activity_repo: ActivityRepository, logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._activity_repo = activity_repo

    def log_activity(
        self,
        user_id: str,
        user_name: str,
        action: str,
        type: ActivityType,
        metadata: str = "",
    ) -> bool:
        """Record one activity entry; returns ``False`` if the write failed."""
        activity = PortalActivity(
            user_id=user_id,
            user_name=user_name,
            action=action,
            type=type,
            metadata=metadata,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self._activity_repo.insert(activity)
        except Exception as exc:
            self._logger.error(
                "Error logging activity '%s' for %s: %s", action, user_id, exc,
            )
            return False
        return True
