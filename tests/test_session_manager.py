"""Tests for the injectable session holder."""

import pytest

from portal.auth import SessionManager
from portal.models.session import Session

SESSION = Session(uid="user-1", email="ana@town.example")


class TestSessionManager:
    """Tests for ``SessionManager``."""

    def test_starts_logged_out(self):
        """A new manager holds no session and no OTP flag."""
        manager = SessionManager()

        assert manager.get_session() is None
        assert not manager.is_authenticated
        assert not manager.otp_verified

    def test_new_session_is_unverified(self):
        """Setting a session never carries over a previous OTP flag."""
        manager = SessionManager()
        manager.set_session(SESSION)
        manager.mark_otp_verified()

        manager.set_session(Session(uid="user-2", email="bo@town.example"))

        assert manager.is_authenticated
        assert not manager.otp_verified
        assert not manager.is_fully_authenticated

    def test_clear_drops_flag_with_session(self):
        """Clearing the session also clears verification."""
        manager = SessionManager()
        manager.set_session(SESSION)
        manager.mark_otp_verified()
        assert manager.is_fully_authenticated

        manager.clear()

        assert manager.state.session is None
        assert not manager.state.otp_verified

    def test_cannot_verify_without_session(self):
        """The OTP flag cannot exist on its own."""
        with pytest.raises(RuntimeError):
            SessionManager().mark_otp_verified()

    def test_require_session(self):
        """``require_session`` raises when logged out."""
        manager = SessionManager()
        with pytest.raises(RuntimeError):
            manager.require_session()

        manager.set_session(SESSION)
        assert manager.require_session() == SESSION
