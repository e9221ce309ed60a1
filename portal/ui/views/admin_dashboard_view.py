"""Admin Dashboard: back-office landing page.

Shows how many resident registrations are pending, approved and
rejected.  Counts refresh every 30 seconds; the refresh timer is
cancelled when the widget is destroyed.

**Thin UI Rule**: Reads through ``UserService`` only.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

import customtkinter as ctk

from portal.logger import StructuredLogger
from portal.models.enums import ApprovalStatus
from portal.models.profile import Profile
from portal.models.service_models import ServiceResult
from portal.services.users import UserService
from portal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_LABEL,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_REFRESH_INTERVAL_MS: int = 30_000  # 30 seconds

_TILES: tuple[tuple[ApprovalStatus, str, str], ...] = (
    (ApprovalStatus.PENDING, "Pending review", STATUS_PENDING),
    (ApprovalStatus.APPROVED, "Approved", STATUS_APPROVED),
    (ApprovalStatus.REJECTED, "Rejected", STATUS_REJECTED),
)


class AdminDashboardView(ctk.CTkFrame):
    """Registration counters for the back office.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    user_service:
        Source of the profile list.
    on_open_users:
        Called when the user clicks "Review registrations".
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        user_service: UserService,
        on_open_users: Callable[[], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._user_service = user_service
        self._on_open_users = on_open_users
        self._logger = logger
        self._refresh_job: Optional[str] = None

        self._count_labels: dict[ApprovalStatus, ctk.CTkLabel] = {}
        self._error_label: Optional[ctk.CTkLabel] = None

        self._build_ui()
        self._refresh()

    # ------------------------------------------------------------------
    # Widget creation
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self,
            text="Back Office",
            font=FONT_HEADING,
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(fill="x", padx=PADDING_LG, pady=(PADDING_LG, PADDING_MD))

        tiles = ctk.CTkFrame(self, fg_color="transparent")
        tiles.pack(fill="x", padx=PADDING_LG)
        for column, (status, caption, colour) in enumerate(_TILES):
            tiles.grid_columnconfigure(column, weight=1)
            tile = ctk.CTkFrame(
                tiles,
                fg_color=CONTENT_CARD_BG,
                corner_radius=CORNER_RADIUS,
                border_width=1,
                border_color=CARD_BORDER,
            )
            tile.grid(
                row=0, column=column, sticky="nsew",
                padx=(0 if column == 0 else PADDING_SM, 0),
            )
            count = ctk.CTkLabel(
                tile, text="–", font=("Segoe UI", 32, "bold"), text_color=colour,
            )
            count.pack(padx=PADDING_MD, pady=(PADDING_MD, 0))
            ctk.CTkLabel(
                tile, text=caption, font=FONT_LABEL, text_color=TEXT_SECONDARY,
            ).pack(padx=PADDING_MD, pady=(0, PADDING_MD))
            self._count_labels[status] = count

        self._error_label = ctk.CTkLabel(
            self, text="", font=FONT_BODY, text_color=ERROR_TEXT, anchor="w",
        )
        self._error_label.pack(fill="x", padx=PADDING_LG, pady=(PADDING_SM, 0))

        ctk.CTkButton(
            self,
            text="Review registrations  →",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=40,
            corner_radius=CORNER_RADIUS,
            command=self._on_open_users,
        ).pack(anchor="w", padx=PADDING_LG, pady=PADDING_MD)

    # ------------------------------------------------------------------
    # Periodic refresh
    # ------------------------------------------------------------------

    def _refresh(self) -> None:
        """Fetch the profile list off the UI thread, then reschedule."""

        def worker() -> None:
            result = self._user_service.list_profiles()
            self.after(0, self._apply, result)

        threading.Thread(target=worker, name="admin-dashboard", daemon=True).start()

    def _apply(self, result: ServiceResult[list[Profile]]) -> None:
        if not self.winfo_exists():
            return

        if result.success:
            profiles = result.data or []
            for status, label in self._count_labels.items():
                label.configure(text=str(sum(1 for p in profiles if p.status == status)))
            self._error_label.configure(text="")
        else:
            self._logger.warning("Dashboard refresh failed: %s", result.error)
            self._error_label.configure(text=result.error or "Could not load counts.")

        self._refresh_job = self.after(_REFRESH_INTERVAL_MS, self._refresh)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def destroy(self) -> None:
        """Cancel the pending refresh timer before destroying the widget."""
        if self._refresh_job is not None:
            self.after_cancel(self._refresh_job)
            self._refresh_job = None
        super().destroy()
