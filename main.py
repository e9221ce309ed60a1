"""
Town Portal Desktop Client Entry Point.

Bootstraps the entire dependency graph via constructor injection and
launches the CustomTkinter GUI.  Every subsystem is wired here, with no
module-level globals.

Usage::

    python main.py
"""

from __future__ import annotations

import sys
import traceback

from portal.auth import SessionManager
from portal.config import get_config
from portal.database import DatabaseManager
from portal.logger import StructuredLogger, get_logger
from portal.models.enums import Route, UserRole
from portal.policy import AccessPolicy
from portal.services import create_services
from portal.ui.app_shell import AppShell
from portal.ui.module_registry import ModuleRegistry
from portal.ui.views.admin_dashboard_view import AdminDashboardView
from portal.ui.views.admin_users_view import AdminUsersView
from portal.ui.views.native_dashboard_view import NativeDashboardView
from portal.ui.views.profile_view import ProfileView


def main() -> None:
    """Application entry point: wire dependencies and launch the GUI."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Town Portal...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (Supabase auth, tables and storage)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )

    # ------------------------------------------------------------------
    # 3. Session Manager + access policy
    # ------------------------------------------------------------------
    session = SessionManager()
    policy = AccessPolicy()

    # ------------------------------------------------------------------
    # 4. Service Container (repositories + services, single composition root)
    # ------------------------------------------------------------------
    services = create_services(
        db=db,
        config=config,
        session=session,
        policy=policy,
    )

    # ------------------------------------------------------------------
    # 5. Module Registry (pages of both areas)
    # ------------------------------------------------------------------
    registry = ModuleRegistry(logger=get_logger("modules"))

    registry.register(
        route=Route.NATIVE_DASHBOARD,
        display_name="Dashboard",
        icon="⌂",  # House
        factory=lambda parent, shell: NativeDashboardView(
            parent=parent,
            profile=shell.current_profile,
            on_open_profile=lambda: shell.navigate(Route.NATIVE_PROFILE),
        ),
        area=UserRole.NATIVE,
        default=True,
    )

    registry.register(
        route=Route.NATIVE_PROFILE,
        display_name="My Profile",
        icon="☺",  # Face
        factory=lambda parent, shell: ProfileView(
            parent=parent,
            profile_service=services["profile_service"],
            profile=shell.current_profile,
            logger=get_logger("profile_view"),
        ),
        area=UserRole.NATIVE,
    )

    registry.register(
        route=Route.ADMIN_DASHBOARD,
        display_name="Overview",
        icon="⌂",  # House
        factory=lambda parent, shell: AdminDashboardView(
            parent=parent,
            user_service=services["user_service"],
            on_open_users=lambda: shell.navigate(Route.ADMIN_USERS),
            logger=get_logger("admin_dashboard"),
        ),
        area=UserRole.ADMIN,
        default=True,
    )

    registry.register(
        route=Route.ADMIN_USERS,
        display_name="Registrations",
        icon="✔",  # Check mark
        factory=lambda parent, shell: AdminUsersView(
            parent=parent,
            user_service=services["user_service"],
            session=session,
            logger=get_logger("admin_users"),
        ),
        area=UserRole.ADMIN,
    )

    # ------------------------------------------------------------------
    # 6. Launch the GUI (blocks until window closes)
    # ------------------------------------------------------------------
    logger.info("Launching GUI...")
    app = AppShell(
        config=config,
        session=session,
        services=services,
        registry=registry,
        logger=get_logger("ui"),
        policy=policy,
    )
    try:
        app.mainloop()
    finally:
        services["profile_watcher"].stop()
        logger.info("Town Portal shut down.")


def _show_fatal_error(exc: BaseException) -> None:
    """Display a fatal-error dialog so double-click users get feedback.

    Uses ``tkinter.messagebox`` (stdlib) rather than CustomTkinter so
    the dialog works even when CTk initialisation itself is the thing
    that failed.
    """
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        import tkinter
        from tkinter import messagebox

        root = tkinter.Tk()
        root.withdraw()
        messagebox.showerror(
            title="Town Portal: Fatal Error",
            message=(
                "The application encountered an unexpected error and "
                "cannot continue.\n\n"
                f"{type(exc).__name__}: {exc}"
            ),
            detail=detail,
        )
        root.destroy()
    except Exception:
        # Headless or missing Tcl/Tk: fall back to stderr.
        sys.stderr.write(
            f"FATAL: {type(exc).__name__}: {exc}\n{detail}"
        )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        _show_fatal_error(exc)
        sys.exit(1)
