"""Tests for the shell's reaction to profile snapshots.

The window is never created: the shell is built without running
``CTk.__init__`` and its view-building methods are mocked, so only the
routing decisions are exercised.
"""

from unittest.mock import MagicMock

import pytest

pytest.importorskip("customtkinter")

from portal.models.enums import ApprovalStatus, LogoutReason, Route, UserRole  # noqa: E402
from portal.models.profile import ProfileState  # noqa: E402
from portal.ui.app_shell import AppShell  # noqa: E402
from tests.conftest import make_profile  # noqa: E402

VIEW_METHODS = ("_show_login", "_show_loading", "_show_pending", "_show_module", "_set_appearance")


@pytest.fixture
def shell(verified_session, policy, logger):
    """A headless shell signed in as a verified resident, watching its profile."""
    app = object.__new__(AppShell)
    app._session = verified_session
    app._policy = policy
    app._logger = logger
    app._services = {"auth_service": MagicMock(), "profile_watcher": MagicMock()}
    app._route = None
    app._profile_state = ProfileState.loading()
    app._unwatch_profile = MagicMock()
    app._appearance = "light"
    app._sidebar = None
    app._module_frames = {}
    app._watchdogs = {UserRole.ADMIN: MagicMock(), UserRole.NATIVE: MagicMock()}
    for name in VIEW_METHODS:
        setattr(app, name, MagicMock())
    return app


class TestProfileSnapshots:
    """Tests for ``AppShell._on_profile_state``."""

    def test_loading_then_pending(self, shell):
        """The dashboard waits for the first read, then shows the approval notice."""
        shell.navigate(Route.NATIVE_DASHBOARD)
        shell._show_loading.assert_called_once()

        shell._on_profile_state(ProfileState.of(make_profile(status=ApprovalStatus.PENDING)))

        shell._show_pending.assert_called_once()
        shell._show_module.assert_not_called()

    def test_approval_reaches_pending_screen_without_reload(self, shell):
        """An approval pushed by the watcher swaps the notice for the dashboard."""
        shell._on_profile_state(ProfileState.of(make_profile(status=ApprovalStatus.PENDING)))
        shell.navigate(Route.NATIVE_DASHBOARD)
        shell._show_pending.assert_called_once()

        shell._on_profile_state(ProfileState.of(make_profile(status=ApprovalStatus.APPROVED)))

        shell._show_module.assert_called_once_with(Route.NATIVE_DASHBOARD)
        shell._watchdogs[UserRole.NATIVE].mount.assert_called()

    def test_watchdogs_are_reevaluated(self, shell):
        """Every snapshot lets the watchdogs re-check their arming predicate."""
        shell._on_profile_state(ProfileState.of(make_profile()))

        for watchdog in shell._watchdogs.values():
            watchdog.reevaluate.assert_called_once()

    def test_role_change_ends_session(self, shell):
        """A resident whose profile turns into staff is signed out of the portal."""
        shell.navigate(Route.NATIVE_DASHBOARD)
        unwatch = shell._unwatch_profile

        shell._on_profile_state(ProfileState.of(make_profile(role=UserRole.ADMIN)))

        shell._services["auth_service"].force_logout.assert_called_once_with(
            LogoutReason.ACCESS_DENIED,
        )
        unwatch.assert_called_once()
        shell._show_login.assert_called_once_with(UserRole.NATIVE)

    def test_snapshot_after_session_end_is_ignored(self, shell):
        """A late snapshot from a finished session changes nothing."""
        shell._route = Route.NATIVE_DASHBOARD
        shell._unwatch_profile = None

        shell._on_profile_state(ProfileState.of(make_profile()))

        assert shell._profile_state.is_loading
        shell._show_module.assert_not_called()

    def test_login_route_is_not_renavigated(self, shell):
        """Snapshots while on a login screen do not re-render it."""
        shell._route = Route.NATIVE_LOGIN

        shell._on_profile_state(ProfileState.of(make_profile()))

        shell._show_login.assert_not_called()
