"""Shared test fixtures for the portal services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest

from portal.auth import SessionManager
from portal.models.enums import ApprovalStatus, UserRole
from portal.models.profile import Profile
from portal.models.session import Session
from portal.policy import AccessPolicy
from portal.services.auth_service import AuthService
from portal.services.otp_service import OtpService

BOOTSTRAP_EMAIL = "root@town.example"


class FakeScheduler:
    """Manual clock exposing Tk's ``after`` / ``after_cancel`` pair."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._next_id = 0
        self._jobs: dict[str, tuple[int, Callable[[], None]]] = {}

    def after(self, ms: int, func: Callable[[], None]) -> str:
        self._next_id += 1
        job_id = f"after#{self._next_id}"
        self._jobs[job_id] = (self.now_ms + ms, func)
        return job_id

    def after_cancel(self, id: str) -> None:
        self._jobs.pop(id, None)

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due callbacks in deadline order."""
        target = self.now_ms + ms
        while True:
            due = [
                (deadline, job_id)
                for job_id, (deadline, _) in self._jobs.items()
                if deadline <= target
            ]
            if not due:
                break
            deadline, job_id = min(due)
            _, func = self._jobs.pop(job_id)
            self.now_ms = deadline
            func()
        self.now_ms = target


class FakeActivitySource:
    """In-memory activity feed; ``emit()`` simulates one user interaction."""

    def __init__(self) -> None:
        self.listeners: list[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def emit(self) -> None:
        for listener in list(self.listeners):
            listener()


class ManualClock:
    """Injectable UTC clock for OTP expiry tests."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_profile(
    uid: str = "user-1",
    email: str = "ana@town.example",
    role: UserRole = UserRole.NATIVE,
    status: ApprovalStatus = ApprovalStatus.APPROVED,
    **overrides: object,
) -> Profile:
    """Build a profile row with sensible defaults."""
    data = {
        "uid": uid,
        "email": email,
        "full_name": "Ana Lopez",
        "role": role,
        "status": status,
    }
    data.update(overrides)
    return Profile(**data)


def sign_in_response(uid: str = "user-1", email: str = "ana@town.example") -> SimpleNamespace:
    """Shape of ``gotrue`` ``AuthResponse`` used by ``AuthService``."""
    return SimpleNamespace(
        user=SimpleNamespace(id=uid, email=email),
        session=SimpleNamespace(
            access_token="access-token",
            refresh_token="refresh-token",
            expires_at=None,
        ),
    )


@pytest.fixture
def logger():
    """Stand-in for ``StructuredLogger``; records every call."""
    return MagicMock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def activity_source():
    return FakeActivitySource()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def policy():
    return AccessPolicy(lambda email: (email or "").strip().lower() == BOOTSTRAP_EMAIL)


@pytest.fixture
def session_manager():
    return SessionManager()


@pytest.fixture
def verified_session(session_manager):
    """Session manager holding an OTP-verified native session."""
    session_manager.set_session(Session(uid="user-1", email="ana@town.example"))
    session_manager.mark_otp_verified()
    return session_manager


@pytest.fixture
def db():
    """``DatabaseManager`` double whose ``supabase`` is a MagicMock client."""
    manager = MagicMock()
    manager.supabase.auth.sign_in_with_password.return_value = sign_in_response()
    return manager


@pytest.fixture
def profile_repo():
    repo = MagicMock()
    repo.get_by_id.return_value = make_profile()
    return repo


@pytest.fixture
def otp_channel():
    channel = MagicMock()
    channel.send_otp_code.return_value = True
    return channel


@pytest.fixture
def otp_service(logger, clock):
    return OtpService(logger=logger, ttl_seconds=600, max_attempts=5, clock=clock)


@pytest.fixture
def activity_feed():
    """``ActivityService`` double."""
    return MagicMock()


@pytest.fixture
def notifier():
    """``NotificationService`` double."""
    return MagicMock()


@pytest.fixture
def auth_service(
    db, session_manager, profile_repo, otp_service, otp_channel, logger, policy,
    activity_feed, notifier,
):
    return AuthService(
        db=db,
        session=session_manager,
        profile_repo=profile_repo,
        otp_service=otp_service,
        otp_channel=otp_channel,
        logger=logger,
        policy=policy,
        activity_service=activity_feed,
        notification_service=notifier,
    )


def sent_code(otp_channel: MagicMock) -> str:
    """The code handed to the OTP channel by the last sign-in."""
    args, _ = otp_channel.send_otp_code.call_args
    return args[1]
