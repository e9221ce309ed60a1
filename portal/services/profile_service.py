"""
Profile Self-Service.

Operations a signed-in citizen performs on their own account: contact
details, theme preference, profile photo and password.  Every operation
requires a fully authenticated (OTP-verified) session and records an
entry in the citizen's activity feed.

After a successful write the profile watcher is asked to refresh, so
the shell's theme and header follow the change immediately.
"""

from __future__ import annotations

import re
import time
from typing import Optional

from portal.auth import SessionManager
from portal.database import DatabaseManager
from portal.guards import AuthenticationError, require_verified_session
from portal.logger import StructuredLogger
from portal.models.activity import ActivityType
from portal.models.auth_models import AuthErrorCode
from portal.models.enums import Theme
from portal.models.profile import Profile
from portal.models.service_models import ServiceResult
from portal.models.session import Session
from portal.repositories.profile_repository import FieldValue, ProfileRepository
from portal.repositories.storage_repository import StorageRepository
from portal.services.activity_service import ActivityService
from portal.services.auth_service import AuthService, describe_auth_error
from portal.services.base_service import BaseService
from portal.services.profile_watcher import ProfileWatcher
from portal.utils.audit import log_audit_event

_MAX_PHOTO_BYTES: int = 5 * 1024 * 1024
_UNSAFE_NAME_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9.]")


class ProfileService(BaseService):
    """Self-service edits on the signed-in user's profile.

    Parameters
    ----------
    profile_repo:
        Reads and patches ``profiles`` rows.
    storage_repo:
        Uploads profile photos.
    session:
        Injectable session holder; every call requires OTP verification.
    db:
        Database manager, for the auth API (password change).
    activity_service:
        Citizen activity feed.
    logger:
        Structured JSON logger.
    watcher:
        Optional profile watcher refreshed after each write.
    """

    def __init__(
        self,
        profile_repo: ProfileRepository,
        storage_repo: StorageRepository,
        session: SessionManager,
        db: DatabaseManager,
        activity_service: ActivityService,
        logger: StructuredLogger,
        watcher: Optional[ProfileWatcher] = None,
    ) -> None:
        super().__init__(logger)
        self._repo = profile_repo
        self._storage = storage_repo
        self._session = session
        self._db = db
        self._activity = activity_service
        self._watcher = watcher
        self._current_session = require_verified_session(session)(
            session.require_session
        )

    # ------------------------------------------------------------------
    # Profile fields
    # ------------------------------------------------------------------

    def update_details(
        self,
        full_name: str,
        phone_number: str = "",
        location: str = "",
    ) -> ServiceResult[Profile]:
        """Update name and contact details."""
        name_check = AuthService.validate_name(full_name, "Full name")
        if not name_check.is_valid:
            return ServiceResult(
                success=False, error=name_check.error_message, status_code=400,
            )
        return self._patch(
            {
                "full_name": full_name.strip(),
                "phone_number": phone_number.strip() or None,
                "location": location.strip() or None,
            },
            action="Updated profile details",
        )

    def set_theme(self, theme: Theme) -> ServiceResult[Profile]:
        """Persist the light/dark preference."""
        return self._patch(
            {"theme": str(Theme(theme))},
            action=f"Switched to {Theme(theme)} theme",
        )

    def upload_photo(
        self,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> ServiceResult[Profile]:
        """Upload a new profile photo and store its public URL."""
        if not content_type.startswith("image/"):
            return ServiceResult(
                success=False, error="Please choose an image file.", status_code=400,
            )
        if not data:
            return ServiceResult(
                success=False, error="The selected file is empty.", status_code=400,
            )
        if len(data) > _MAX_PHOTO_BYTES:
            return ServiceResult(
                success=False,
                error="Image is too large. The limit is 5 MB.",
                status_code=400,
            )

        try:
            session = self._current_session()
        except AuthenticationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=401)

        safe_name = _UNSAFE_NAME_RE.sub("_", filename) or "photo"
        path = f"profiles/{session.uid}/{int(time.time() * 1000)}_{safe_name}"
        try:
            url = self._storage.upload(path, data, content_type)
        except Exception as exc:
            self._logger.error("Photo upload failed for %s: %s", session.uid, exc)
            return ServiceResult(
                success=False,
                error="Could not upload the photo. Please try again.",
                status_code=502,
            )

        return self._patch({"photo_url": url}, action="Updated profile photo")

    # ------------------------------------------------------------------
    # Password
    # ------------------------------------------------------------------

    def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> ServiceResult[None]:
        """Re-authenticate with *current_password*, then set *new_password*.

        Backend errors map through the auth taxonomy, e.g. a wrong current
        password reads "Incorrect email or password.".
        """
        if new_password != confirm_password:
            return ServiceResult(
                success=False, error="New passwords do not match", status_code=400,
            )
        pw_check = AuthService.validate_password(new_password)
        if not pw_check.is_valid:
            return ServiceResult(
                success=False, error=pw_check.error_message, status_code=400,
            )

        try:
            session = self._current_session()
        except AuthenticationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=401)

        try:
            auth = self._db.supabase.auth
            auth.sign_in_with_password({
                "email": session.email,
                "password": current_password,
            })
            auth.update_user({"password": new_password})
        except Exception as exc:
            failure = describe_auth_error(exc)
            self._logger.warning(
                "Password change failed (%s): %s", failure.code, exc,
                extra={"event": "PASSWORD_CHANGE_FAILED", "user_id": session.uid},
            )
            status_code = (
                401 if failure.code in (
                    AuthErrorCode.INVALID_CREDENTIAL,
                    AuthErrorCode.REQUIRES_REAUTHENTICATION,
                ) else 400
            )
            return ServiceResult(
                success=False, error=failure.message, status_code=status_code,
            )

        log_audit_event(
            logger=self._logger,
            action="CHANGE_PASSWORD",
            entity_type="Session",
            entity_id=session.uid,
            user_id=session.uid,
        )
        self._record_activity(
            session, "Changed account password", ActivityType.SECURITY,
        )
        return ServiceResult(success=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _patch(
        self, fields: dict[str, FieldValue], *, action: str,
    ) -> ServiceResult[Profile]:
        try:
            session = self._current_session()
        except AuthenticationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=401)

        try:
            updated = self._repo.update_fields(session.uid, fields)
        except Exception as exc:
            self._logger.error("Profile update failed for %s: %s", session.uid, exc)
            return ServiceResult(
                success=False,
                error="Could not save your changes. Please try again.",
                status_code=500,
            )
        if updated is None:
            return ServiceResult(
                success=False, error="Profile not found.", status_code=404,
            )

        log_audit_event(
            logger=self._logger,
            action="UPDATE_PROFILE",
            entity_type="Profile",
            entity_id=session.uid,
            user_id=session.uid,
            details={"fields": ",".join(sorted(fields))},
        )
        self._record_activity(
            session, action, ActivityType.PROFILE, user_name=updated.full_name,
        )
        if self._watcher is not None:
            self._watcher.refresh()
        return ServiceResult(success=True, data=updated)

    def _record_activity(
        self,
        session: Session,
        action: str,
        type: ActivityType,
        user_name: Optional[str] = None,
    ) -> None:
        if user_name is None:
            try:
                profile = self._repo.get_by_id(session.uid)
            except Exception as exc:
                self._logger.warning("Profile lookup failed for activity: %s", exc)
                profile = None
            user_name = profile.full_name if profile else session.email
        self._activity.log_activity(session.uid, user_name, action, type)
