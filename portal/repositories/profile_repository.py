"""
Profile Repository.

Handles all access to the ``profiles`` table: one row per auth user,
keyed by the auth uid, holding role, approval status and preferences.
"""

from __future__ import annotations

from typing import Optional, Union

from portal.database import DatabaseManager
from portal.logger import StructuredLogger
from portal.models.enums import ApprovalStatus
from portal.models.profile import Profile
from portal.repositories.base_repository import BaseRepository

FieldValue = Union[str, None]


class ProfileRepository(BaseRepository):
    """Data access layer for Profile rows.

    There is no ``delete()``: profiles are created at registration and
    afterwards only change status (back office) or preferences (owner).
    """

    TABLE = "profiles"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    def get_by_id(self, uid: str) -> Optional[Profile]:
        """Fetch the profile for *uid*, or ``None`` when no row exists."""
        def _query() -> Optional[Profile]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("uid", uid)
                .maybe_single()
                .execute()
            )
            # Recent postgrest clients return None instead of an empty
            # response when maybe_single() matches nothing.
            if response is None or not response.data:
                return None
            return Profile(**response.data)

        return self._execute(_query, operation_name="get_by_id (profiles)")

    def list_profiles(
        self, status: Optional[ApprovalStatus] = None,
    ) -> list[Profile]:
        """Fetch all profiles, newest first, optionally filtered by *status*."""
        def _query() -> list[Profile]:
            query = self.supabase.table(self.TABLE).select("*")
            if status is not None:
                query = query.eq("status", str(status))
            response = query.order("created_at", desc=True).execute()
            return [Profile(**row) for row in response.data or []]

        return self._execute(_query, operation_name="list_profiles (profiles)")

    def create(self, profile: Profile) -> Profile:
        """Insert a new profile row and return it as stored."""
        data = profile.model_dump(mode="json", exclude_none=True)

        def _query() -> Profile:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            if response.data:
                return Profile(**response.data[0])
            return profile

        result = self._execute(_query, operation_name="create (profiles)")
        self._logger.info("Profile created: %s", result.uid)
        return result

    def update_fields(
        self, uid: str, fields: dict[str, FieldValue],
    ) -> Optional[Profile]:
        """Patch *fields* on the profile for *uid*.

        Returns the updated profile, or ``None`` if no row matched.
        """
        def _query() -> Optional[Profile]:
            response = (
                self.supabase.table(self.TABLE)
                .update(fields)
                .eq("uid", uid)
                .execute()
            )
            if not response.data:
                return None
            return Profile(**response.data[0])

        return self._execute(_query, operation_name="update_fields (profiles)")

    def update_status(
        self, uid: str, status: ApprovalStatus,
    ) -> Optional[Profile]:
        """Set the approval status for *uid*."""
        return self.update_fields(uid, {"status": str(status)})
