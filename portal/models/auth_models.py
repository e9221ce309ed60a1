"""
Authentication Pipeline Models.

Pydantic models and enumerations for the auth request/response
contracts between ``AuthService`` and the UI layer.

Every auth operation returns a structured, inspectable result rather
than raw strings or exception side-channels, and every backend failure
is classified into the fixed ``AuthErrorCode`` taxonomy first.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from portal.models.enums import AuthStep, Route, UserRole
from portal.models.session import Session


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Exhaustive enumeration of authentication error categories.

    ``INVALID_CREDENTIAL`` deliberately covers a bad password, an
    unknown user AND an account that is not approved, so the sign-in
    screen never reveals whether an account exists.
    """

    INVALID_CREDENTIAL = "invalid_credential"
    WEAK_PASSWORD = "weak_password"
    EMAIL_IN_USE = "email_in_use"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    NETWORK_FAILURE = "network_failure"
    INVALID_EMAIL_FORMAT = "invalid_email_format"
    REQUIRES_REAUTHENTICATION = "requires_reauthentication"
    OPERATION_DISABLED = "operation_disabled"
    OTP_SEND_FAILURE = "otp_send_failure"
    OTP_MISMATCH = "otp_mismatch"
    OTP_EXPIRED = "otp_expired"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN = "unknown"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_CREDENTIAL: "Incorrect email or password.",
    AuthErrorCode.WEAK_PASSWORD: (
        "Password is too weak. It should be at least 6 characters."
    ),
    AuthErrorCode.EMAIL_IN_USE: "This email is already registered.",
    AuthErrorCode.TOO_MANY_ATTEMPTS: (
        "Too many failed attempts. Please try again later."
    ),
    AuthErrorCode.NETWORK_FAILURE: (
        "Network error. Please check your internet connection."
    ),
    AuthErrorCode.INVALID_EMAIL_FORMAT: "Please enter a valid email address.",
    AuthErrorCode.REQUIRES_REAUTHENTICATION: (
        "Please log in again to verify your identity."
    ),
    AuthErrorCode.OPERATION_DISABLED: (
        "This operation is currently disabled. Contact support."
    ),
    AuthErrorCode.OTP_SEND_FAILURE: (
        "Failed to send verification code. Please try again."
    ),
    AuthErrorCode.OTP_MISMATCH: "Invalid verification code.",
    AuthErrorCode.OTP_EXPIRED: (
        "Your verification code has expired. Please sign in again."
    ),
    AuthErrorCode.UNKNOWN: "An unexpected error occurred. Please try again.",
}


# ---------------------------------------------------------------------------
# Supabase error-code mapping
# ---------------------------------------------------------------------------

# Keys are Supabase Auth ``error_code`` values.  When an exception carries
# no code, the same keys are searched in its lower-cased message.
SUPABASE_ERROR_MAP: dict[str, AuthErrorCode] = {
    "invalid_credentials": AuthErrorCode.INVALID_CREDENTIAL,
    "invalid login credentials": AuthErrorCode.INVALID_CREDENTIAL,
    "invalid_grant": AuthErrorCode.INVALID_CREDENTIAL,
    "user_not_found": AuthErrorCode.INVALID_CREDENTIAL,
    "email_not_confirmed": AuthErrorCode.INVALID_CREDENTIAL,
    "weak_password": AuthErrorCode.WEAK_PASSWORD,
    "email_exists": AuthErrorCode.EMAIL_IN_USE,
    "user_already_exists": AuthErrorCode.EMAIL_IN_USE,
    "user already registered": AuthErrorCode.EMAIL_IN_USE,
    "over_request_rate_limit": AuthErrorCode.TOO_MANY_ATTEMPTS,
    "over_email_send_rate_limit": AuthErrorCode.TOO_MANY_ATTEMPTS,
    "too_many_requests": AuthErrorCode.TOO_MANY_ATTEMPTS,
    "email_address_invalid": AuthErrorCode.INVALID_EMAIL_FORMAT,
    "validation_failed": AuthErrorCode.INVALID_EMAIL_FORMAT,
    "reauthentication_needed": AuthErrorCode.REQUIRES_REAUTHENTICATION,
    "session_not_found": AuthErrorCode.REQUIRES_REAUTHENTICATION,
    "signup_disabled": AuthErrorCode.OPERATION_DISABLED,
    "email_provider_disabled": AuthErrorCode.OPERATION_DISABLED,
    "user_banned": AuthErrorCode.OPERATION_DISABLED,
}


class AuthFailure(BaseModel):
    """A classified backend failure: taxonomy code plus display text."""

    code: AuthErrorCode
    message: str

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side field validation check.

    Attributes
    ----------
    is_valid:
        ``True`` when the value passes the validation rule.
    error_message:
        Human-readable description of the failure, or ``None`` on success.
    """

    is_valid: bool
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Unified auth response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Unified response for every step of the sign-in protocol, plus
    registration and password reset.

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    step:
        Controller state after the operation.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    message:
        Informational text for successful operations.
    email:
        The normalised email address involved.
    role:
        Role the verified session was admitted with.
    navigate_to:
        Where the shell should go next, if anywhere.
    attempt:
        Sign-in attempt the result belongs to; pass it back to
        ``back_to_login`` so a late cancel cannot end a newer attempt.
    """

    success: bool
    step: AuthStep = AuthStep.LOGGED_OUT
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    message: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    navigate_to: Optional[Route] = None
    attempt: int = 0

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# OTP challenge and session-scoped auth state
# ---------------------------------------------------------------------------

class OtpChallenge(BaseModel):
    """One-time code issued for a single sign-in attempt.

    Lives only in memory inside ``OtpService`` and is discarded on
    verification, on cancel, and on teardown.
    """

    code: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")
    issued_for: str
    issued_at: datetime
    attempts: int = 0
    verified: bool = False


class AuthState(BaseModel):
    """Everything the client knows about the current sign-in.

    ``otp_verified`` is a field of the state rather than an independent
    storage key, so "session exists" and "OTP verified" can never
    diverge: replacing or clearing the session resets the flag.
    """

    session: Optional[Session] = None
    otp_verified: bool = False

    model_config = {"frozen": True}

    @property
    def is_fully_authenticated(self) -> bool:
        return self.session is not None and self.otp_verified
