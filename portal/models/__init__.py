"""
Data Models Package.

Re-exports the Pydantic models for short imports:
    from portal.models import Profile, ProfileState, Session
    from portal.models import UserRole, ApprovalStatus, Route
"""

from portal.models.enums import (
    ApprovalStatus,
    AuthStep,
    GuardOutcome,
    LogoutReason,
    ProfileLoad,
    Route,
    Theme,
    UserRole,
)
from portal.models.profile import Profile, ProfileState
from portal.models.session import Session

__all__ = [
    "ApprovalStatus",
    "AuthStep",
    "GuardOutcome",
    "LogoutReason",
    "Profile",
    "ProfileLoad",
    "ProfileState",
    "Route",
    "Session",
    "Theme",
    "UserRole",
]
