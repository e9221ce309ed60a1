"""Application Host Shell.

The top-level ``CTk`` window that orchestrates the application
lifecycle: login → verification → area shell (sidebar + pages) → logout.

Every navigation runs through :meth:`AppShell.navigate`, which asks the
route's guard what to show.  The guard is re-run on every profile
change pushed by the ``ProfileWatcher``, so approval decisions and role
changes take effect without a manual reload.  Each area has its own
``InactivityWatchdog`` that is mounted only while that area is shown.

All dependencies are injected via the constructor.  The shell contains
no business logic: authentication is delegated to ``AuthService``,
access decisions to :mod:`portal.guards`, and page rendering to the
``ModuleRegistry`` + ``SidebarNav``.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from portal.auth import SessionManager
from portal.config import AppConfig
from portal.guards import (
    LOGIN_ROUTES,
    area_for_route,
    evaluate_route,
    is_login_route,
)
from portal.logger import StructuredLogger
from portal.models.auth_models import AuthResult
from portal.models.enums import GuardOutcome, LogoutReason, Route, UserRole
from portal.models.profile import Profile, ProfileState
from portal.policy import AccessPolicy
from portal.services import ServiceContainer
from portal.services.inactivity import InactivityWatchdog
from portal.ui.activity import TkActivitySource
from portal.ui.login_view import LoginView
from portal.ui.module_frame import ProfileAware
from portal.ui.module_registry import ModuleRegistry
from portal.ui.pending_view import PendingApprovalView
from portal.ui.sidebar import SidebarNav
from portal.ui.theme import (
    CONTENT_BG,
    FONT_BODY,
    LOGIN_WINDOW_HEIGHT,
    LOGIN_WINDOW_WIDTH,
    MAIN_WINDOW_HEIGHT,
    MAIN_WINDOW_WIDTH,
    TEXT_SECONDARY,
)

INACTIVITY_MESSAGE: str = "Logged out due to inactivity"

_AREA_SUBTITLES: dict[UserRole, str] = {
    UserRole.NATIVE: "Resident",
    UserRole.ADMIN: "Administrator",
}


class AppShell(ctk.CTk):
    """Host Shell: the main application window.

    Lifecycle
    ---------
    1. On boot: displays the ``LoginView`` of the configured entry area.
    2. After the verification code is accepted: starts watching the
       user's profile and navigates to the area dashboard.
    3. Page switching: caches frames (lazy creation) per area.
    4. Logout (explicit, inactivity or access denied): signs out, stops
       watching the profile, returns to the area's login screen.

    Parameters
    ----------
    config:
        Application configuration (entry area, inactivity timeouts).
    session:
        Shared session holder read by the guards.
    services:
        Fully-wired service container.
    registry:
        Module registry populated before shell launch.
    logger:
        Structured logger instance.
    policy:
        Bootstrap-account policy passed to the guards.
    """

    def __init__(
        self,
        config: AppConfig,
        session: SessionManager,
        services: ServiceContainer,
        registry: ModuleRegistry,
        logger: StructuredLogger,
        policy: Optional[AccessPolicy] = None,
    ) -> None:
        super().__init__()

        self._config = config
        self._session = session
        self._services = services
        self._registry = registry
        self._logger = logger
        self._policy = policy or AccessPolicy()

        self._route: Optional[Route] = None
        self._profile_state: ProfileState = ProfileState.loading()
        self._unwatch_profile: Optional[Callable[[], None]] = None
        self._appearance: str = "light"

        # Page frame cache (route → CTkFrame) for the area shell on screen
        self._module_frames: dict[Route, ctk.CTkFrame] = {}
        self._active_route: Optional[Route] = None
        self._shell_area: Optional[UserRole] = None

        # Layout containers (created on demand)
        self._login_view: Optional[LoginView] = None
        self._overlay: Optional[ctk.CTkFrame] = None
        self._sidebar: Optional[SidebarNav] = None
        self._content_container: Optional[ctk.CTkFrame] = None

        # One watchdog per area, mounted only while that area is shown
        activity_source = TkActivitySource(self, logger)
        self._watchdogs: dict[UserRole, InactivityWatchdog] = {
            UserRole.ADMIN: InactivityWatchdog(
                scheduler=self,
                timeout_ms=config.ADMIN_INACTIVITY_TIMEOUT_S * 1000,
                arming_predicate=self._admin_watchdog_should_arm,
                on_expire=lambda: self._handle_inactivity(UserRole.ADMIN),
                logger=logger,
                activity_source=activity_source,
                name="admin",
            ),
            UserRole.NATIVE: InactivityWatchdog(
                scheduler=self,
                timeout_ms=config.NATIVE_INACTIVITY_TIMEOUT_S * 1000,
                arming_predicate=lambda: True,
                on_expire=lambda: self._handle_inactivity(UserRole.NATIVE),
                logger=logger,
                activity_source=activity_source,
                name="native",
            ),
        }

        # Window defaults
        self.title("Town Portal")
        ctk.set_appearance_mode(self._appearance)
        ctk.set_default_color_theme("green")

        # Graceful shutdown on window close
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        # Start with the login screen of the configured area
        self.navigate(LOGIN_ROUTES[UserRole(config.PORTAL_ENTRY_AREA)])

    # ==================================================================
    # Shell context (used by page factories)
    # ==================================================================

    @property
    def current_profile(self) -> Optional[Profile]:
        return self._profile_state.profile

    def navigate(self, route: Route) -> None:
        """Go to *route*, or wherever its guard sends the user instead."""
        session = self._session.get_session()
        decision = evaluate_route(
            route,
            session,
            self._profile_state,
            self._session.otp_verified,
            self._policy,
        )

        if decision.outcome == GuardOutcome.REDIRECT and decision.redirect_to:
            self._logger.info(
                "Guard redirected %s to %s.", route, decision.redirect_to,
                extra={"event": "GUARD_REDIRECT", "route": str(route)},
            )
            if is_login_route(decision.redirect_to) and session is not None:
                # A live session that is refused access is ended, not parked.
                self._services["auth_service"].force_logout(
                    LogoutReason.ACCESS_DENIED,
                )
                self._end_session()
            self.navigate(decision.redirect_to)
            return

        self._route = route
        area = area_for_route(route)

        if is_login_route(route):
            self._unmount_watchdogs()
            self._show_login(area)
            return

        self._mount_watchdog(area)
        if decision.outcome == GuardOutcome.LOADING:
            self._show_loading()
        elif decision.outcome == GuardOutcome.PENDING_APPROVAL:
            self._show_pending()
        else:
            self._show_module(route)

    # ==================================================================
    # View transitions
    # ==================================================================

    def _show_login(self, area: UserRole) -> None:
        """Display the login view of *area* and size the window."""
        if self._login_view is not None and self._login_view.area == area:
            return
        self._clear_window()

        self.geometry(f"{MAIN_WINDOW_WIDTH}x{MAIN_WINDOW_HEIGHT}")
        self.resizable(True, True)
        self.minsize(LOGIN_WINDOW_WIDTH, LOGIN_WINDOW_HEIGHT)

        self._login_view = LoginView(
            parent=self,
            auth_service=self._services["auth_service"],
            area=area,
            on_login_success=self._handle_login_success,
            on_switch_area=lambda other: self.navigate(LOGIN_ROUTES[other]),
            logger=self._logger,
        )
        self._login_view.pack(fill="both", expand=True)

    def _show_loading(self) -> None:
        """Neutral placeholder while the profile's first read settles."""
        self._clear_window()
        self._overlay = ctk.CTkFrame(self, fg_color=CONTENT_BG)
        ctk.CTkLabel(
            self._overlay,
            text="Loading your account...",
            font=FONT_BODY,
            text_color=TEXT_SECONDARY,
        ).place(relx=0.5, rely=0.5, anchor="center")
        self._overlay.pack(fill="both", expand=True)

    def _show_pending(self) -> None:
        """Replace the area with the awaiting-approval notice."""
        self._clear_window()
        self._overlay = PendingApprovalView(
            parent=self,
            profile=self.current_profile,
            on_logout=self._handle_logout,
        )
        self._overlay.pack(fill="both", expand=True)

    def _build_area_shell(self, area: UserRole) -> None:
        """Build the sidebar + content container for *area*."""
        self._clear_window()

        self.geometry(f"{MAIN_WINDOW_WIDTH}x{MAIN_WINDOW_HEIGHT}")
        self.resizable(True, True)
        self.minsize(800, 500)

        session = self._session.get_session()
        profile = self.current_profile
        display_name = (
            profile.full_name if profile is not None
            else (session.email if session is not None else "")
        )

        self._sidebar = SidebarNav(
            parent=self,
            on_module_selected=self.navigate,
            on_logout=self._handle_logout,
            display_name=display_name,
            subtitle=_AREA_SUBTITLES[area],
            logger=self._logger,
        )
        self._sidebar.pack(side="left", fill="y")

        for entry in self._registry.get_modules_for_area(area):
            self._sidebar.register_module(
                route=entry.route,
                display_name=entry.display_name,
                icon=entry.icon,
            )

        self._content_container = ctk.CTkFrame(self, fg_color=CONTENT_BG)
        self._content_container.pack(side="top", fill="both", expand=True)
        self._shell_area = area

    # ==================================================================
    # Page switching
    # ==================================================================

    def _show_module(self, route: Route) -> None:
        """Activate a page: hide the current frame, show (or create) target."""
        try:
            entry = self._registry.get_module(route)
        except KeyError:
            self._logger.error("Cannot switch to unregistered page: %s", route)
            return

        if self._shell_area != entry.area or self._content_container is None:
            self._build_area_shell(entry.area)

        if route == self._active_route:
            return

        if self._active_route and self._active_route in self._module_frames:
            self._module_frames[self._active_route].pack_forget()

        if route not in self._module_frames:
            self._module_frames[route] = entry.factory(self._content_container, self)

        self._module_frames[route].pack(fill="both", expand=True)
        self._active_route = route

        if self._sidebar:
            self._sidebar.set_active(route)

        self._logger.info("Switched to page: %s", route)

    def _clear_window(self) -> None:
        """Destroy login view, overlays, sidebar, content and cached pages."""
        for frame in self._module_frames.values():
            frame.destroy()
        self._module_frames.clear()
        self._active_route = None
        self._shell_area = None

        for attr in ("_login_view", "_overlay", "_sidebar", "_content_container"):
            widget = getattr(self, attr)
            if widget is not None:
                widget.destroy()
                setattr(self, attr, None)

    # ==================================================================
    # Auth lifecycle
    # ==================================================================

    def _handle_login_success(self, result: AuthResult) -> None:
        """Called by ``LoginView`` once the verification code matched."""
        session = self._session.get_session()
        if session is None:
            self._logger.warning("Verified sign-in without a session; ignoring.")
            return

        self._logger.info(
            "Login successful: %s", session.email,
            extra={"event": "SHELL_LOGIN", "role": str(result.role)},
        )
        self._start_profile_watch(session.uid)

        destination = result.navigate_to or self._registry.default_route(
            result.role or UserRole.ADMIN,
        )
        if destination is None:
            self._logger.error("No landing page for role %s.", result.role)
            return
        self.navigate(destination)

    def _handle_logout(self) -> None:
        """Delegate logout to AuthService and return to the area's login."""
        area = area_for_route(self._route) if self._route else UserRole.NATIVE
        result = self._services["auth_service"].logout()
        self._end_session()
        self.navigate(result.navigate_to or LOGIN_ROUTES[area])

    def _handle_inactivity(self, area: UserRole) -> None:
        """Watchdog expiry: sign out and tell the user why."""
        self._services["auth_service"].force_logout(LogoutReason.INACTIVITY)
        self._end_session()
        self.navigate(LOGIN_ROUTES[area])
        if self._login_view is not None:
            self._login_view.show_message(INACTIVITY_MESSAGE)

    def _end_session(self) -> None:
        """Drop every per-session subscription and UI preference."""
        if self._unwatch_profile is not None:
            unwatch, self._unwatch_profile = self._unwatch_profile, None
            unwatch()
        self._profile_state = ProfileState.loading()
        self._unmount_watchdogs()
        self._set_appearance("light")

    # ==================================================================
    # Profile observation
    # ==================================================================

    def _start_profile_watch(self, uid: str) -> None:
        if self._unwatch_profile is not None:
            self._unwatch_profile()
        watcher = self._services["profile_watcher"]
        self._profile_state = watcher.current(uid)
        self._unwatch_profile = watcher.watch(uid, self._post_profile_state)

    def _post_profile_state(self, state: ProfileState) -> None:
        """Watcher-thread callback: hand the snapshot to the UI thread."""
        self.after(0, self._on_profile_state, state)

    def _on_profile_state(self, state: ProfileState) -> None:
        """Apply a profile snapshot and re-run the current route's guard."""
        if self._unwatch_profile is None:
            return  # snapshot from a session that already ended

        self._profile_state = state
        profile = state.profile
        if profile is not None:
            self._set_appearance(str(profile.theme))
            if self._sidebar is not None:
                self._sidebar.set_display_name(profile.full_name)
            for frame in self._module_frames.values():
                if isinstance(frame, ProfileAware):
                    frame.on_profile_changed(profile)

        for watchdog in self._watchdogs.values():
            watchdog.reevaluate()

        if self._route is not None and not is_login_route(self._route):
            self.navigate(self._route)

    def _set_appearance(self, mode: str) -> None:
        if mode != self._appearance:
            self._appearance = mode
            ctk.set_appearance_mode(mode)

    # ==================================================================
    # Inactivity watchdogs
    # ==================================================================

    def _admin_watchdog_should_arm(self) -> bool:
        profile = self.current_profile
        return (
            self._session.is_authenticated
            and profile is not None
            and profile.role == UserRole.ADMIN
        )

    def _mount_watchdog(self, area: UserRole) -> None:
        for watchdog_area, watchdog in self._watchdogs.items():
            if watchdog_area != area:
                watchdog.unmount()
        self._watchdogs[area].mount()

    def _unmount_watchdogs(self) -> None:
        for watchdog in self._watchdogs.values():
            watchdog.unmount()

    # ==================================================================
    # Window close
    # ==================================================================

    def _on_close(self) -> None:
        """Gracefully shut down background threads before destroying."""
        self._unmount_watchdogs()
        if self._unwatch_profile is not None:
            self._unwatch_profile()
            self._unwatch_profile = None
        self._services["profile_watcher"].stop()
        self.destroy()
