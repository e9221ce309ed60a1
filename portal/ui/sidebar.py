"""Sidebar Navigation Component.

Displays the pages of the current portal area, the signed-in user's
identity, and a logout button.  Follows the **Thin UI** rule: zero
business logic; all actions are delegated via injected callbacks.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from portal.logger import StructuredLogger
from portal.models.enums import Route
from portal.ui.theme import (
    BRAND_ACCENT,
    FONT_BODY,
    FONT_SIDEBAR,
    FONT_SIDEBAR_ACTIVE,
    FONT_SMALL,
    LOGOUT_HOVER,
    LOGOUT_PRIMARY,
    PADDING_MD,
    PADDING_SM,
    SIDEBAR_ACTIVE,
    SIDEBAR_BG,
    SIDEBAR_HOVER,
    SIDEBAR_TEXT,
    SIDEBAR_WIDTH,
    TEXT_ON_ACCENT,
    TEXT_LIGHT,
)

_AVATAR_SIZE: int = 40


class _ModuleButton(ctk.CTkButton):
    """Internal clickable sidebar entry for a single page."""

    def __init__(
        self,
        parent: ctk.CTkFrame,
        route: Route,
        display_name: str,
        icon: str,
        on_click: Callable[[Route], None],
    ) -> None:
        self._route = route
        super().__init__(
            parent,
            text=f"  {icon}   {display_name}",
            anchor="w",
            font=FONT_SIDEBAR,
            text_color=SIDEBAR_TEXT,
            fg_color="transparent",
            hover_color=SIDEBAR_HOVER,
            height=40,
            corner_radius=6,
            command=lambda: on_click(self._route),
        )

    @property
    def route(self) -> Route:
        return self._route

    def set_active(self, active: bool) -> None:
        """Highlight or un-highlight this button."""
        if active:
            self.configure(fg_color=SIDEBAR_ACTIVE, font=FONT_SIDEBAR_ACTIVE)
        else:
            self.configure(fg_color="transparent", font=FONT_SIDEBAR)


class SidebarNav(ctk.CTkFrame):
    """Sidebar navigation panel for one portal area.

    Parameters
    ----------
    parent:
        The parent widget (typically the AppShell root).
    on_module_selected:
        Called with the page's ``Route`` when the user clicks it.
    on_logout:
        Called when the user clicks the Logout button.
    display_name:
        Name shown next to the avatar.
    subtitle:
        Second line under the name (area or role label).
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        on_module_selected: Callable[[Route], None],
        on_logout: Callable[[], None],
        display_name: str,
        subtitle: str,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, width=SIDEBAR_WIDTH, fg_color=SIDEBAR_BG)
        self.pack_propagate(False)

        self._on_module_selected = on_module_selected
        self._on_logout = on_logout
        self._logger = logger

        self._buttons: dict[Route, _ModuleButton] = {}
        self._active_route: Optional[Route] = None
        self._name_label: Optional[ctk.CTkLabel] = None
        self._initials_label: Optional[ctk.CTkLabel] = None

        self._build_ui(display_name, subtitle)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register_module(
        self,
        route: Route,
        display_name: str,
        icon: str,
    ) -> None:
        """Add a page entry to the sidebar."""
        btn = _ModuleButton(
            parent=self._modules_frame,
            route=route,
            display_name=display_name,
            icon=icon,
            on_click=self._on_module_selected,
        )
        btn.pack(fill="x", padx=PADDING_SM, pady=2)
        self._buttons[route] = btn

    def set_active(self, route: Route) -> None:
        """Highlight *route* and un-highlight the previous one."""
        if self._active_route and self._active_route in self._buttons:
            self._buttons[self._active_route].set_active(False)
        if route in self._buttons:
            self._buttons[route].set_active(True)
        self._active_route = route

    def set_display_name(self, display_name: str) -> None:
        """Refresh the name and initials after a profile edit."""
        if self._name_label is not None:
            self._name_label.configure(text=display_name)
        if self._initials_label is not None:
            self._initials_label.configure(text=self._get_initials(display_name))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_ui(self, display_name: str, subtitle: str) -> None:
        """Construct the sidebar layout."""
        # --- User info section: avatar + name + subtitle ---
        user_frame = ctk.CTkFrame(self, fg_color="transparent")
        user_frame.pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        row = ctk.CTkFrame(user_frame, fg_color="transparent")
        row.pack(fill="x")

        avatar = ctk.CTkFrame(
            row,
            width=_AVATAR_SIZE,
            height=_AVATAR_SIZE,
            corner_radius=_AVATAR_SIZE // 2,
            fg_color=BRAND_ACCENT,
        )
        avatar.pack(side="left", padx=(0, 10))
        avatar.pack_propagate(False)

        self._initials_label = ctk.CTkLabel(
            avatar,
            text=self._get_initials(display_name),
            font=("Segoe UI", 14, "bold"),
            text_color=TEXT_ON_ACCENT,
        )
        self._initials_label.place(relx=0.5, rely=0.5, anchor="center")

        text_frame = ctk.CTkFrame(row, fg_color="transparent")
        text_frame.pack(side="left", fill="x", expand=True)

        self._name_label = ctk.CTkLabel(
            text_frame,
            text=display_name,
            font=FONT_SIDEBAR_ACTIVE,
            text_color=TEXT_LIGHT,
            anchor="w",
        )
        self._name_label.pack(fill="x")
        ctk.CTkLabel(
            text_frame,
            text=subtitle,
            font=FONT_SMALL,
            text_color=SIDEBAR_TEXT,
            anchor="w",
        ).pack(fill="x")

        # --- Separator ---
        sep = ctk.CTkFrame(self, height=1, fg_color=SIDEBAR_HOVER)
        sep.pack(fill="x", padx=PADDING_MD, pady=PADDING_SM)

        # --- Page list ---
        self._modules_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._modules_frame.pack(fill="both", expand=True, padx=0, pady=PADDING_SM)

        # --- Bottom section: separator + logout ---
        bottom_sep = ctk.CTkFrame(self, height=1, fg_color=SIDEBAR_HOVER)
        bottom_sep.pack(fill="x", padx=PADDING_MD, side="bottom")

        bottom_frame = ctk.CTkFrame(self, fg_color="transparent")
        bottom_frame.pack(
            fill="x", padx=PADDING_SM, pady=PADDING_SM, side="bottom",
        )

        ctk.CTkButton(
            bottom_frame,
            text="  \u23FB   Log Out",
            font=FONT_BODY,
            fg_color="transparent",
            hover_color=LOGOUT_HOVER,
            text_color=LOGOUT_PRIMARY,
            anchor="w",
            height=36,
            corner_radius=6,
            command=self._on_logout,
        ).pack(fill="x")

    @staticmethod
    def _get_initials(full_name: str) -> str:
        """Extract up to two uppercase initials from a full name."""
        parts = full_name.strip().split()
        if len(parts) >= 2:
            return (parts[0][0] + parts[-1][0]).upper()
        if parts:
            return parts[0][0].upper()
        return "?"
