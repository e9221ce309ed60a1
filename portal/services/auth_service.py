"""
Authentication Service.

Single orchestrator for the portal's sign-in protocol and the account
flows around it: credential check, profile approval gate, OTP challenge,
cancel, forced/explicit logout, native registration and password reset.

Sits between the UI layer and the Supabase auth / profiles layer so
that ``LoginView`` remains a thin form handler.

State machine::

    LOGGED_OUT --submit_credentials--> CREDENTIALS_SUBMITTED
    CREDENTIALS_SUBMITTED --approved + code sent--> OTP_PENDING
    CREDENTIALS_SUBMITTED --rejected / unapproved / send failed--> LOGGED_OUT
    OTP_PENDING --verify_otp(match)--> OTP_VERIFIED
    OTP_PENDING --back_to_login--> LOGGED_OUT
    any --force_logout--> LOGGED_OUT

All methods return typed ``AuthResult`` or ``ValidationResult``
models: the UI never inspects raw exceptions.
"""

from __future__ import annotations

import re
import threading
from datetime import datetime, timezone
from typing import Optional, Protocol, Union

from portal.auth import SessionManager
from portal.database import DatabaseManager
from portal.logger import StructuredLogger
from portal.models.activity import ActivityType, NotificationType
from portal.models.auth_models import (
    AUTH_ERROR_MESSAGES,
    SUPABASE_ERROR_MAP,
    AuthErrorCode,
    AuthFailure,
    AuthResult,
    ValidationResult,
)
from portal.models.enums import (
    ApprovalStatus,
    AuthStep,
    LogoutReason,
    Route,
    Theme,
    UserRole,
)
from portal.models.profile import Profile
from portal.models.session import Session
from portal.policy import AccessPolicy
from portal.repositories.profile_repository import ProfileRepository
from portal.services.activity_service import ActivityService
from portal.services.notification_service import NotificationService
from portal.services.otp_service import OtpService, OtpVerdict
from portal.utils.audit import log_audit_event


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

_MIN_PASSWORD_LENGTH: int = 6

# Matches C0 controls (U+0000-U+001F), DEL (U+007F), and C1 controls (U+0080-U+009F).
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f-\x9f]")

# Sign-in failures that say nothing about whether the account exists.
_NON_ENUMERATING_CODES: frozenset[AuthErrorCode] = frozenset({
    AuthErrorCode.NETWORK_FAILURE,
    AuthErrorCode.TOO_MANY_ATTEMPTS,
})

_RESET_NOTICE: str = (
    "If this email is registered, you will receive a password reset link."
)


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

def _is_network_error(exc: BaseException) -> bool:
    # RuntimeError is what DatabaseManager raises when the backend is not
    # configured; gotrue signals transport failures with AuthRetryableError.
    return isinstance(exc, (OSError, TimeoutError, RuntimeError)) or (
        "Retryable" in type(exc).__name__
    )


def describe_auth_error(
    error: Union[BaseException, AuthErrorCode, str, None],
) -> AuthFailure:
    """Map any backend error into the fixed ``AuthErrorCode`` taxonomy.

    Total: never raises, always returns a presentable message.

    Parameters
    ----------
    error:
        An exception raised by the Supabase client, an ``AuthErrorCode``,
        or a raw backend error-code string.

    Returns
    -------
    AuthFailure
        ``UNKNOWN`` failures carry the raw exception text when there is
        any, otherwise the generic fallback message.
    """
    if isinstance(error, AuthErrorCode):
        return AuthFailure(
            code=error,
            message=AUTH_ERROR_MESSAGES.get(
                error, AUTH_ERROR_MESSAGES[AuthErrorCode.UNKNOWN],
            ),
        )

    if error is None:
        return describe_auth_error(AuthErrorCode.UNKNOWN)

    if isinstance(error, str):
        mapped = SUPABASE_ERROR_MAP.get(error.strip().lower())
        return describe_auth_error(mapped or AuthErrorCode.UNKNOWN)

    try:
        if _is_network_error(error):
            return describe_auth_error(AuthErrorCode.NETWORK_FAILURE)

        code = getattr(error, "code", None)
        if isinstance(code, str) and code.lower() in SUPABASE_ERROR_MAP:
            return describe_auth_error(SUPABASE_ERROR_MAP[code.lower()])

        raw = str(error)
        lowered = raw.lower()
        for key, mapped in SUPABASE_ERROR_MAP.items():
            if key in lowered:
                return describe_auth_error(mapped)
    except Exception:  # noqa: BLE001 - a broken __str__ must not escape
        raw = ""

    return AuthFailure(
        code=AuthErrorCode.UNKNOWN,
        message=raw or AUTH_ERROR_MESSAGES[AuthErrorCode.UNKNOWN],
    )


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------

class OtpChannel(Protocol):
    """Anything that can deliver a verification code (``EmailService``)."""

    def send_otp_code(self, email: str, code: str, display_name: str) -> bool:
        ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AuthService:
    """Session / access controller.

    Receives all infrastructure dependencies via ``__init__`` and
    exposes request -> result methods for every auth flow.  Holds the
    controller state (``step``) and, through ``OtpService``, the one
    outstanding code.

    Parameters
    ----------
    db:
        Database manager exposing the Supabase client (auth API).
    session:
        Injectable holder of the session and its OTP flag.
    profile_repo:
        Reads and creates ``profiles`` rows.
    otp_service:
        Issues and checks the verification code.
    otp_channel:
        Delivers the code (normally ``EmailService``).
    logger:
        Structured JSON logger for audit-grade logging.
    policy:
        Bootstrap-account policy.
    activity_service:
        Optional citizen activity feed.
    notification_service:
        Optional back-office alerts (registration).
    """

    def __init__(
        self,
        db: DatabaseManager,
        session: SessionManager,
        profile_repo: ProfileRepository,
        otp_service: OtpService,
        otp_channel: OtpChannel,
        logger: StructuredLogger,
        policy: Optional[AccessPolicy] = None,
        activity_service: Optional[ActivityService] = None,
        notification_service: Optional[NotificationService] = None,
    ) -> None:
        self._db: DatabaseManager = db
        self._session: SessionManager = session
        self._profile_repo: ProfileRepository = profile_repo
        self._otp: OtpService = otp_service
        self._otp_channel: OtpChannel = otp_channel
        self._logger: StructuredLogger = logger
        self._policy: AccessPolicy = policy or AccessPolicy()
        self._activity: Optional[ActivityService] = activity_service
        self._notifications: Optional[NotificationService] = notification_service

        self._lock: threading.RLock = threading.RLock()
        self._step: AuthStep = AuthStep.LOGGED_OUT
        self._role: Optional[UserRole] = None
        self._profile: Optional[Profile] = None
        self._attempt: int = 0

    # ==================================================================
    # Read-only state
    # ==================================================================

    @property
    def step(self) -> AuthStep:
        with self._lock:
            return self._step

    @property
    def role(self) -> Optional[UserRole]:
        """Role the current attempt was admitted with, if any."""
        with self._lock:
            return self._role

    @property
    def pending_email(self) -> Optional[str]:
        """Address the outstanding code was sent to."""
        return self._otp.pending_email

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex."""
        if not email or not email.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Email address is required.",
            )
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False,
                error_message=AUTH_ERROR_MESSAGES[AuthErrorCode.INVALID_EMAIL_FORMAT],
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_password(password: str) -> ValidationResult:
        """Enforce the credential store's minimum password length."""
        if len(password or "") < _MIN_PASSWORD_LENGTH:
            return ValidationResult(
                is_valid=False,
                error_message=AUTH_ERROR_MESSAGES[AuthErrorCode.WEAK_PASSWORD],
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str, field_label: str) -> ValidationResult:
        """Validate a free-text name field.

        Rejects control characters (U+0000-U+001F, U+007F-U+009F)
        including newlines and tabs to prevent log injection and
        display corruption.
        """
        stripped = (name or "").strip()
        if not stripped:
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_label} is required.",
            )
        if len(stripped) < 2:
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_label} must be at least 2 characters.",
            )
        if _CONTROL_CHAR_RE.search(stripped):
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"{field_label} contains invalid characters. "
                    "Only printable characters are allowed."
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return (email or "").strip().lower()

    # ==================================================================
    # Sign-in protocol
    # ==================================================================

    def submit_credentials(self, email: str, password: str) -> AuthResult:
        """Check credentials and, for an approved profile, send a code.

        A bad password, an unknown user, a missing profile and an
        unapproved profile all return the same ``INVALID_CREDENTIAL``
        result, and none of them leaves a session behind.

        Parameters
        ----------
        email:
            The raw email entered by the user.
        password:
            The raw password entered by the user.

        Returns
        -------
        AuthResult
            ``step=OTP_PENDING`` on success, ``step=LOGGED_OUT`` on any
            failure.
        """
        email = self.normalize_email(email)

        with self._lock:
            # A new submission abandons whatever attempt was in flight.
            if self._step != AuthStep.LOGGED_OUT:
                self._discard_attempt(LogoutReason.CANCELLED)

            self._step = AuthStep.CREDENTIALS_SUBMITTED
            self._attempt += 1

            # --- Credential store ---
            try:
                response = self._db.supabase.auth.sign_in_with_password({
                    "email": email,
                    "password": password,
                })
                session = self._to_session(response, email)
            except Exception as exc:
                failure = describe_auth_error(exc)
                self._logger.warning(
                    "Sign-in rejected (%s): %s", failure.code, exc,
                    extra={"event": "LOGIN_FAILED", "email": email},
                )
                self._session.clear()
                self._step = AuthStep.LOGGED_OUT
                if failure.code in _NON_ENUMERATING_CODES:
                    return self._failure(failure.code)
                return self._invalid_credential()

            self._session.set_session(session)

            # --- Profile approval gate ---
            try:
                profile = self._profile_repo.get_by_id(session.uid)
            except Exception as exc:
                failure = describe_auth_error(exc)
                self._logger.error(
                    "Profile lookup failed during sign-in: %s", exc,
                    extra={"event": "LOGIN_FAILED", "email": email},
                )
                self._discard_attempt(LogoutReason.ACCESS_DENIED)
                if failure.code in _NON_ENUMERATING_CODES:
                    return self._failure(failure.code)
                return self._invalid_credential()

            role = self._admitted_role(session, profile)
            if role is None:
                self._logger.warning(
                    "Sign-in refused: profile missing or not approved.",
                    extra={
                        "event": "LOGIN_REFUSED",
                        "email": email,
                        "user_id": session.uid,
                    },
                )
                self._discard_attempt(LogoutReason.ACCESS_DENIED)
                return self._invalid_credential()

            # --- OTP dispatch ---
            code = self._otp.issue(email)
            display_name = (
                profile.full_name if profile is not None else email.split("@")[0]
            )
            try:
                sent = bool(self._otp_channel.send_otp_code(email, code, display_name))
            except Exception as exc:
                self._logger.error("OTP channel raised: %s", exc)
                sent = False
            del code

            if not sent:
                self._logger.warning(
                    "Verification code could not be sent.",
                    extra={"event": "OTP_SEND_FAILED", "email": email},
                )
                self._discard_attempt(LogoutReason.CANCELLED)
                return self._failure(AuthErrorCode.OTP_SEND_FAILURE)

            self._role = role
            self._profile = profile
            self._step = AuthStep.OTP_PENDING

            log_audit_event(
                logger=self._logger,
                action="LOGIN_CREDENTIALS_ACCEPTED",
                entity_type="Session",
                entity_id=session.uid,
                user_id=session.uid,
                details={"email": email, "role": str(role)},
            )

            return AuthResult(
                success=True,
                step=AuthStep.OTP_PENDING,
                email=email,
                role=role,
                message=f"A 6-digit verification code was sent to {email}.",
                attempt=self._attempt,
            )

    def verify_otp(self, code: str) -> AuthResult:
        """Check *code* against the outstanding challenge.

        On a match the session is marked OTP-verified and the result
        carries the dashboard route for the admitted role.  A mismatch
        keeps the challenge (``step=OTP_PENDING``); an expired or
        exhausted challenge ends the attempt.
        """
        with self._lock:
            session = self._session.get_session()
            if (
                self._step == AuthStep.OTP_VERIFIED
                and session is not None
                and self._session.otp_verified
            ):
                # A repeated submission of an accepted code keeps the session.
                return self._verified_result(session.email)

            if self._step != AuthStep.OTP_PENDING or session is None:
                self._discard_attempt(LogoutReason.CANCELLED)
                return self._failure(AuthErrorCode.OTP_EXPIRED)

            verdict = self._otp.verify(code or "")

            if verdict == OtpVerdict.MISMATCH:
                self._logger.info(
                    "Verification code mismatch.",
                    extra={"event": "OTP_MISMATCH", "email": session.email},
                )
                return self._failure(
                    AuthErrorCode.OTP_MISMATCH,
                    step=AuthStep.OTP_PENDING,
                    email=session.email,
                )

            if verdict != OtpVerdict.MATCH:
                code_for_verdict = (
                    AuthErrorCode.TOO_MANY_ATTEMPTS
                    if verdict == OtpVerdict.EXHAUSTED
                    else AuthErrorCode.OTP_EXPIRED
                )
                self._discard_attempt(LogoutReason.OTP_EXHAUSTED)
                return self._failure(code_for_verdict)

            self._session.mark_otp_verified()
            self._step = AuthStep.OTP_VERIFIED
            role = self._role or UserRole.ADMIN

            log_audit_event(
                logger=self._logger,
                action="LOGIN",
                entity_type="Session",
                entity_id=session.uid,
                user_id=session.uid,
                details={"email": session.email, "role": str(role)},
            )
            if self._activity is not None and self._profile is not None:
                self._activity.log_activity(
                    session.uid,
                    self._profile.full_name,
                    "Signed in to the portal",
                    ActivityType.AUTH,
                )

            return self._verified_result(session.email)

    def _verified_result(self, email: str) -> AuthResult:
        role = self._role or UserRole.ADMIN
        return AuthResult(
            success=True,
            step=AuthStep.OTP_VERIFIED,
            email=email,
            role=role,
            navigate_to=(
                Route.NATIVE_DASHBOARD if role == UserRole.NATIVE
                else Route.ADMIN_DASHBOARD
            ),
            attempt=self._attempt,
        )

    def back_to_login(self, attempt: Optional[int] = None) -> AuthResult:
        """Abandon the current attempt.  Safe to call any number of times.

        When *attempt* is given and a newer sign-in has started since,
        the call does nothing.
        """
        with self._lock:
            if attempt is not None and attempt != self._attempt:
                self._logger.info(
                    "Ignoring cancel for superseded sign-in attempt %d.", attempt,
                    extra={"event": "CANCEL_IGNORED"},
                )
                return AuthResult(success=True, step=self._step)
            self._discard_attempt(LogoutReason.CANCELLED)
            return AuthResult(success=True, step=AuthStep.LOGGED_OUT)

    # ==================================================================
    # Logout
    # ==================================================================

    def force_logout(self, reason: LogoutReason) -> AuthResult:
        """Sign out from any state.  Never raises.

        Server-side sign-out failures are logged and do not block the
        local cleanup.  The result's ``navigate_to`` is the login entry
        point of the area the session belonged to.
        """
        with self._lock:
            destination = (
                Route.NATIVE_LOGIN if self._role == UserRole.NATIVE
                else Route.ADMIN_LOGIN
            )
            session = self._session.get_session()
            self._discard_attempt(reason)

            if session is not None:
                log_audit_event(
                    logger=self._logger,
                    action="LOGOUT",
                    entity_type="Session",
                    entity_id=session.uid,
                    user_id=session.uid,
                    details={"email": session.email, "reason": str(reason)},
                )

            return AuthResult(
                success=True,
                step=AuthStep.LOGGED_OUT,
                navigate_to=destination,
            )

    def logout(self) -> AuthResult:
        """Explicit, user-initiated sign-out."""
        return self.force_logout(LogoutReason.EXPLICIT)

    # ==================================================================
    # Registration
    # ==================================================================

    def register_native(
        self,
        full_name: str,
        email: str,
        password: str,
        phone_number: str = "",
        location: str = "",
    ) -> AuthResult:
        """Create a citizen account awaiting back-office approval.

        Signs up with the credential store, creates the ``profiles`` row
        with ``status=pending``, alerts the back office, then signs the
        new session out: the applicant cannot reach protected content
        until an administrator approves the account.
        """
        name_check = self.validate_name(full_name, "Full name")
        if not name_check.is_valid:
            return self._validation_failure(name_check)

        email_check = self.validate_email(email)
        if not email_check.is_valid:
            return self._validation_failure(email_check)

        pw_check = self.validate_password(password)
        if not pw_check.is_valid:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.WEAK_PASSWORD,
                error_message=pw_check.error_message,
            )

        email = self.normalize_email(email)
        full_name = full_name.strip()

        with self._lock:
            if self._step != AuthStep.LOGGED_OUT or self._session.is_authenticated:
                self._discard_attempt(LogoutReason.CANCELLED)

            try:
                response = self._db.supabase.auth.sign_up({
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": full_name}},
                })
                user = getattr(response, "user", None)
                if user is None:
                    raise ValueError("Sign-up returned no user.")

                profile = self._profile_repo.create(
                    Profile(
                        uid=str(user.id),
                        email=email,
                        full_name=full_name,
                        phone_number=phone_number.strip() or None,
                        location=location.strip() or None,
                        role=UserRole.NATIVE,
                        status=ApprovalStatus.PENDING,
                        theme=Theme.LIGHT,
                        created_at=datetime.now(timezone.utc),
                    )
                )
            except Exception as exc:
                failure = describe_auth_error(exc)
                self._logger.warning(
                    "Registration failed (%s): %s", failure.code, exc,
                    extra={"event": "REGISTER_FAILED", "email": email},
                )
                self._sign_out_backend(email)
                self._session.clear()
                return self._failure(failure.code, message=failure.message)

            self._sign_out_backend(email)
            self._session.clear()

        log_audit_event(
            logger=self._logger,
            action="REGISTER",
            entity_type="Profile",
            entity_id=profile.uid,
            user_id=profile.uid,
            details={"email": email, "status": str(profile.status)},
        )
        if self._notifications is not None:
            self._notifications.send_admin_notification(
                NotificationType.REGISTRATION,
                message=f"New native registration: {full_name}",
                user_name=full_name,
                email=email,
                details={"location": profile.location},
            )

        return AuthResult(
            success=True,
            email=email,
            message=(
                "Registration submitted. An administrator will review your "
                "account before you can sign in."
            ),
        )

    # ==================================================================
    # Password reset
    # ==================================================================

    def request_password_reset(self, email: str) -> AuthResult:
        """Send a password-reset email via Supabase.

        Uses an anti-enumeration response: always shows the same
        success message regardless of whether the email is registered.
        """
        email_check = self.validate_email(email)
        if not email_check.is_valid:
            return self._validation_failure(email_check)

        email = self.normalize_email(email)

        try:
            self._db.supabase.auth.reset_password_for_email(email)
            self._logger.info(
                "Password reset requested for %s.", email,
                extra={"event": "PASSWORD_RESET_REQUESTED", "email": email},
            )
        except Exception as exc:
            failure = describe_auth_error(exc)
            if failure.code in _NON_ENUMERATING_CODES:
                return self._failure(failure.code)
            self._logger.warning("Password reset error for %s: %s", email, exc)

        return AuthResult(success=True, email=email, message=_RESET_NOTICE)

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _admitted_role(
        self, session: Session, profile: Optional[Profile],
    ) -> Optional[UserRole]:
        """Role to continue with, or ``None`` when sign-in must be refused."""
        if profile is None:
            # Only the bootstrap account may proceed without a profile.
            if self._policy.is_bootstrap_account(session.email):
                return UserRole.ADMIN
            return None
        if not profile.is_approved:
            return None
        if profile.role == UserRole.NATIVE:
            return UserRole.NATIVE
        return UserRole.ADMIN

    @staticmethod
    def _to_session(response: object, email: str) -> Session:
        user = getattr(response, "user", None)
        if user is None:
            raise ValueError("invalid login credentials")
        raw = getattr(response, "session", None)
        return Session(
            uid=str(user.id),
            email=getattr(user, "email", None) or email,
            access_token=getattr(raw, "access_token", None),
            refresh_token=getattr(raw, "refresh_token", None),
            expires_at=getattr(raw, "expires_at", None),
        )

    def _discard_attempt(self, reason: LogoutReason) -> None:
        """Return to ``LOGGED_OUT`` with no session and no code.

        Caller MUST already hold ``self._lock``.
        """
        session = self._session.get_session()
        self._otp.discard()
        if session is not None:
            self._sign_out_backend(session.email)
            self._logger.info(
                "Session ended (%s).", reason,
                extra={
                    "event": "SESSION_ENDED",
                    "reason": str(reason),
                    "user_id": session.uid,
                },
            )
        self._session.clear()
        self._step = AuthStep.LOGGED_OUT
        self._role = None
        self._profile = None

    def _sign_out_backend(self, email: str) -> None:
        try:
            self._db.supabase.auth.sign_out()
        except Exception as exc:
            self._logger.warning("Server-side sign_out failed for %s: %s", email, exc)

    @staticmethod
    def _invalid_credential() -> AuthResult:
        # One shared shape for every refused sign-in.
        return AuthResult(
            success=False,
            step=AuthStep.LOGGED_OUT,
            error_code=AuthErrorCode.INVALID_CREDENTIAL,
            error_message=AUTH_ERROR_MESSAGES[AuthErrorCode.INVALID_CREDENTIAL],
        )

    @staticmethod
    def _failure(
        code: AuthErrorCode,
        *,
        step: AuthStep = AuthStep.LOGGED_OUT,
        email: Optional[str] = None,
        message: Optional[str] = None,
    ) -> AuthResult:
        return AuthResult(
            success=False,
            step=step,
            email=email,
            error_code=code,
            error_message=message or describe_auth_error(code).message,
        )

    @staticmethod
    def _validation_failure(check: ValidationResult) -> AuthResult:
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.VALIDATION_ERROR,
            error_message=check.error_message,
        )
