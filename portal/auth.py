"""
Authentication & Session State.

Provides an injectable ``SessionManager`` that holds the current
``AuthState``: the credential-store session plus the OTP verification
flag bound to it.

Usage::

    from portal.auth import SessionManager
    from portal.models.session import Session

    session = SessionManager()
    session.set_session(Session(uid="abc-123", email="user@example.com"))
    session.mark_otp_verified()
    assert session.is_fully_authenticated
"""

from __future__ import annotations

import threading
from typing import Optional

from portal.models.auth_models import AuthState
from portal.models.session import Session


class SessionManager:
    """Injectable holder for the current authentication state.

    Each instance maintains its own state, eliminating the need for
    module-level globals.  Pass a single ``SessionManager`` through the
    dependency-injection layer so the controller, the guards and the
    shell all read the same state.

    The OTP flag is stored on the same immutable ``AuthState`` as the
    session.  Setting a new session or clearing it always starts with
    ``otp_verified=False``.
    """

    def __init__(self) -> None:
        self._lock: threading.RLock = threading.RLock()
        self._state: AuthState = AuthState()

    @property
    def state(self) -> AuthState:
        """Snapshot of the current auth state."""
        with self._lock:
            return self._state

    def set_session(self, session: Session) -> None:
        """Record *session* as the current credential session (unverified)."""
        with self._lock:
            self._state = AuthState(session=session, otp_verified=False)

    def get_session(self) -> Optional[Session]:
        """Return the current session, or ``None``."""
        with self._lock:
            return self._state.session

    def require_session(self) -> Session:
        """Return the current session.

        Raises:
            RuntimeError: If no session exists.
        """
        with self._lock:
            if self._state.session is None:
                raise RuntimeError(
                    "No user is currently authenticated. Login required."
                )
            return self._state.session

    def mark_otp_verified(self) -> None:
        """Record that the current session passed the OTP challenge.

        Raises:
            RuntimeError: If there is no session to mark.
        """
        with self._lock:
            if self._state.session is None:
                raise RuntimeError("Cannot verify OTP without a session.")
            self._state = AuthState(session=self._state.session, otp_verified=True)

    def clear(self) -> None:
        """Drop the session and, with it, the OTP flag."""
        with self._lock:
            self._state = AuthState()

    @property
    def is_authenticated(self) -> bool:
        """``True`` when the credential store has issued a session."""
        with self._lock:
            return self._state.session is not None

    @property
    def otp_verified(self) -> bool:
        with self._lock:
            return self._state.otp_verified

    @property
    def is_fully_authenticated(self) -> bool:
        """``True`` only after the OTP challenge succeeded for this session."""
        with self._lock:
            return self._state.is_fully_authenticated
