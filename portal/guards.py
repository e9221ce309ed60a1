"""
Route Guards.

Decision functions that gate rendering of protected areas, plus a
decorator factory for gating service-layer functions behind a fully
authenticated (OTP-verified) session.

Usage::

    from portal.auth import SessionManager
    from portal.guards import guard_native, require_verified_session

    decision = guard_native(session.get_session(), profile_state,
                            session.otp_verified)

    auth_guard = require_verified_session(session)

    @auth_guard
    def some_service_function() -> str:
        return "only reachable after OTP verification"
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Optional, ParamSpec, TypeVar

from pydantic import BaseModel

from portal.auth import SessionManager
from portal.models.enums import GuardOutcome, Route, UserRole
from portal.models.profile import ProfileState
from portal.models.session import Session
from portal.policy import AccessPolicy

P = ParamSpec("P")
R = TypeVar("R")

_DEFAULT_POLICY = AccessPolicy()


class AuthenticationError(RuntimeError):
    """Raised when a guarded function is called without a verified session."""


class GuardDecision(BaseModel):
    """Result of a guard evaluation.

    ``redirect_to`` is set only when ``outcome`` is ``REDIRECT``.
    """

    outcome: GuardOutcome
    redirect_to: Optional[Route] = None

    model_config = {"frozen": True}

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(outcome=GuardOutcome.RENDER)

    @classmethod
    def loading(cls) -> "GuardDecision":
        return cls(outcome=GuardOutcome.LOADING)

    @classmethod
    def pending_approval(cls) -> "GuardDecision":
        return cls(outcome=GuardOutcome.PENDING_APPROVAL)

    @classmethod
    def redirect(cls, route: Route) -> "GuardDecision":
        return cls(outcome=GuardOutcome.REDIRECT, redirect_to=route)


def guard_admin(
    session: Optional[Session],
    profile_state: ProfileState,
    otp_verified: bool,
    policy: AccessPolicy = _DEFAULT_POLICY,
) -> GuardDecision:
    """Decide whether the admin back office may render.

    A session that has not passed the verification code counts as
    signed out.  A native-profile holder is never treated as admin; only
    the bootstrap account is exempt from both checks.  Sessions without
    a profile are treated as staff.
    """
    if session is None:
        return GuardDecision.redirect(Route.ADMIN_LOGIN)

    if not otp_verified and not policy.is_bootstrap_account(session.email):
        return GuardDecision.redirect(Route.ADMIN_LOGIN)

    # The role is unknown until the first profile read settles.
    if profile_state.is_loading:
        return GuardDecision.loading()

    profile = profile_state.profile
    if (
        profile is not None
        and profile.role == UserRole.NATIVE
        and not policy.is_bootstrap_account(session.email)
    ):
        return GuardDecision.redirect(Route.NATIVE_DASHBOARD)

    return GuardDecision.render()


def guard_native(
    session: Optional[Session],
    profile_state: ProfileState,
    otp_verified: bool,
    policy: AccessPolicy = _DEFAULT_POLICY,
) -> GuardDecision:
    """Decide what the native portal shows for the current state.

    Evaluated on every protected navigation and on every profile change,
    so the OTP flag is re-enforced beyond the sign-in screen and an
    approval decision shows up without a manual reload.
    """
    if profile_state.is_loading:
        return GuardDecision.loading()

    if session is None:
        return GuardDecision.redirect(Route.NATIVE_LOGIN)

    profile = profile_state.profile
    if profile is None or profile.role != UserRole.NATIVE:
        return GuardDecision.redirect(Route.NATIVE_LOGIN)

    if not otp_verified and not policy.is_bootstrap_account(session.email):
        return GuardDecision.redirect(Route.NATIVE_LOGIN)

    if not profile.is_approved:
        return GuardDecision.pending_approval()

    return GuardDecision.render()


# ---------------------------------------------------------------------------
# Route table
# ---------------------------------------------------------------------------

LOGIN_ROUTES: dict[UserRole, Route] = {
    UserRole.NATIVE: Route.NATIVE_LOGIN,
    UserRole.ADMIN: Route.ADMIN_LOGIN,
}


def area_for_route(route: Route) -> UserRole:
    """Portal area a route belongs to (``/portal/*`` is the native area)."""
    return UserRole.NATIVE if route.startswith("/portal/") else UserRole.ADMIN


def is_login_route(route: Route) -> bool:
    return route in LOGIN_ROUTES.values()


def evaluate_route(
    route: Route,
    session: Optional[Session],
    profile_state: ProfileState,
    otp_verified: bool,
    policy: AccessPolicy = _DEFAULT_POLICY,
) -> GuardDecision:
    """Run the guard protecting *route*.  Login routes always render."""
    if is_login_route(route):
        return GuardDecision.render()
    if area_for_route(route) == UserRole.NATIVE:
        return guard_native(session, profile_state, otp_verified, policy)
    return guard_admin(session, profile_state, otp_verified, policy)


def require_verified_session(
    session: SessionManager,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that enforces a fully authenticated *session*.

    The returned decorator checks ``session.is_fully_authenticated``
    before every call to the wrapped function.  A credential session that
    has not passed the OTP challenge is rejected with
    :class:`AuthenticationError`.

    Args:
        session: The injectable ``SessionManager`` that holds the
            current auth state.

    Returns:
        A decorator suitable for wrapping service-layer callables.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not session.is_fully_authenticated:
                raise AuthenticationError(
                    "Authentication required. Please sign in and enter "
                    "your verification code first."
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
