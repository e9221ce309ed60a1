"""
User Approval Service.

Back-office operations on citizen accounts: listing profiles and
approving or rejecting registrations.  A decision only changes the
``status`` column; an open native session picks it up through the
profile watcher.

Architectural notes:
    - Reads and writes go through ProfileRepository.
    - Only an admin profile or the bootstrap account may decide.
    - Every decision is written to the audit log.
"""

from __future__ import annotations

from typing import Optional

from portal.auth import SessionManager
from portal.guards import AuthenticationError, require_verified_session
from portal.logger import StructuredLogger
from portal.models.enums import ApprovalStatus, UserRole
from portal.models.profile import Profile
from portal.models.service_models import ServiceResult
from portal.models.session import Session
from portal.policy import AccessPolicy
from portal.repositories.profile_repository import ProfileRepository
from portal.services.base_service import BaseService
from portal.utils.audit import log_audit_event

_DECISION_ACTIONS: dict[ApprovalStatus, str] = {
    ApprovalStatus.APPROVED: "APPROVE",
    ApprovalStatus.REJECTED: "REJECT",
    ApprovalStatus.PENDING: "RESET_TO_PENDING",
}


class UserService(BaseService):
    """Service layer for admin approval of citizen accounts."""

    def __init__(
        self,
        repo: ProfileRepository,
        session: SessionManager,
        logger: StructuredLogger,
        policy: Optional[AccessPolicy] = None,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._session = session
        self._policy = policy or AccessPolicy()
        # Returns the signed-in session; raises AuthenticationError before OTP.
        self._current_session = require_verified_session(session)(
            session.require_session
        )

    def list_profiles(
        self, status: Optional[ApprovalStatus] = None,
    ) -> ServiceResult[list[Profile]]:
        """
        Fetch profiles for the approvals screen, newest first.

        Pass *status* to show only one queue (e.g. ``PENDING``).
        """
        try:
            actor = self._current_session()
        except AuthenticationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=401)

        denied = self._check_admin(actor)
        if denied is not None:
            return denied

        try:
            profiles = self._repo.list_profiles(status)
        except Exception as exc:
            self._logger.error("Failed to fetch profiles: %s", exc)
            return ServiceResult(
                success=False,
                error=f"Database error fetching profiles: {exc}",
                status_code=500,
            )
        return ServiceResult(success=True, data=profiles)

    def set_status(
        self,
        uid: str,
        status: ApprovalStatus,
        actor: Session,
    ) -> ServiceResult[Profile]:
        """
        Record an approval decision for the profile *uid*.

        Args:
            uid: Auth uid of the citizen being decided on.
            status: New approval status.
            actor: Session of the administrator making the decision.
        """
        try:
            self._current_session()
        except AuthenticationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=401)

        # --- 0. RBAC: only admins or the bootstrap account decide ---
        denied = self._check_admin(actor)
        if denied is not None:
            return denied

        # --- 1. Verify profile exists ---
        try:
            existing: Optional[Profile] = self._repo.get_by_id(uid)
        except Exception as exc:
            self._logger.error("Profile lookup failed for %s: %s", uid, exc)
            return ServiceResult(
                success=False,
                error=f"Could not load profile: {exc}",
                status_code=500,
            )
        if existing is None:
            return ServiceResult(
                success=False,
                error="User not found.",
                status_code=404,
            )

        old_status = str(existing.status)

        # --- 2. Update via repository ---
        try:
            updated = self._repo.update_status(uid, status)
        except Exception as exc:
            self._logger.error("update_status failed for %s: %s", uid, exc)
            return ServiceResult(
                success=False,
                error=f"Could not update status: {exc}",
                status_code=500,
            )
        if updated is None:
            return ServiceResult(
                success=False,
                error="Failed to update status in database.",
                status_code=500,
            )

        # --- 3. Audit trail ---
        log_audit_event(
            logger=self._logger,
            action=_DECISION_ACTIONS[status],
            entity_type="Profile",
            entity_id=uid,
            user_id=actor.uid,
            details={
                "old_status": old_status,
                "new_status": str(status),
                "performed_by": actor.email,
            },
        )

        return ServiceResult(success=True, data=updated)

    def approve(self, uid: str, actor: Session) -> ServiceResult[Profile]:
        return self.set_status(uid, ApprovalStatus.APPROVED, actor)

    def reject(self, uid: str, actor: Session) -> ServiceResult[Profile]:
        return self.set_status(uid, ApprovalStatus.REJECTED, actor)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_admin(self, actor: Session) -> Optional[ServiceResult]:
        """Return a 403 result unless *actor* may make back-office decisions."""
        if self._policy.is_bootstrap_account(actor.email):
            return None
        try:
            profile = self._repo.get_by_id(actor.uid)
        except Exception as exc:
            self._logger.error("Actor lookup failed for %s: %s", actor.uid, exc)
            profile = None
        if profile is not None and profile.role == UserRole.ADMIN:
            return None
        self._logger.warning(
            "Back-office action refused for %s.", actor.email,
            extra={"event": "ACCESS_DENIED", "user_id": actor.uid},
        )
        return ServiceResult(
            success=False,
            error="Only administrators can review accounts.",
            status_code=403,
        )
