"""
Shared Enumerations for Town Portal Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so profile rows read from Supabase (``role == "native"``) work as-is.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """Roles stored on a profile.

    A ``native`` is a citizen-role portal user.  Everything that is not a
    native profile (including sessions with no profile at all) is treated
    as back-office staff.
    """

    NATIVE = "native"
    ADMIN = "admin"


class ApprovalStatus(StrEnum):
    """Back-office vetting state of a native registration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Theme(StrEnum):
    """Per-user colour preference."""

    LIGHT = "light"
    DARK = "dark"


class AuthStep(StrEnum):
    """States of the sign-in protocol owned by ``AuthService``."""

    LOGGED_OUT = "logged_out"
    CREDENTIALS_SUBMITTED = "credentials_submitted"
    OTP_PENDING = "otp_pending"
    OTP_VERIFIED = "otp_verified"


class Route(StrEnum):
    """Navigation targets used by the shell and the route guards."""

    NATIVE_LOGIN = "/portal/login"
    NATIVE_DASHBOARD = "/portal/dashboard"
    NATIVE_PROFILE = "/portal/profile"
    ADMIN_LOGIN = "/admin/login"
    ADMIN_DASHBOARD = "/admin/dashboard"
    ADMIN_USERS = "/admin/users"


class GuardOutcome(StrEnum):
    """What a route guard tells the shell to do."""

    RENDER = "render"
    LOADING = "loading"
    REDIRECT = "redirect"
    PENDING_APPROVAL = "pending_approval"


class LogoutReason(StrEnum):
    """Why a session was torn down (recorded in the audit trail)."""

    EXPLICIT = "explicit"
    INACTIVITY = "inactivity"
    CANCELLED = "cancelled"
    ACCESS_DENIED = "access_denied"
    OTP_EXHAUSTED = "otp_exhausted"


class ProfileLoad(StrEnum):
    """Tri-state of the observable profile source."""

    LOADING = "loading"
    NONE = "none"
    VALUE = "value"
