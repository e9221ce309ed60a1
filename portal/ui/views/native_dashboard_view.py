"""Resident Dashboard: landing page of the resident portal.

**Thin UI Rule**: Zero business logic. Only reads and displays the
profile the shell pushes in.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from portal.models.enums import ApprovalStatus
from portal.models.profile import Profile
from portal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
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

_STATUS_COLOURS: dict[ApprovalStatus, str] = {
    ApprovalStatus.APPROVED: STATUS_APPROVED,
    ApprovalStatus.PENDING: STATUS_PENDING,
    ApprovalStatus.REJECTED: STATUS_REJECTED,
}


class NativeDashboardView(ctk.CTkFrame):
    """Welcome card with the resident's account summary.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    profile:
        Profile at the time the page is first shown.
    on_open_profile:
        Called when the user clicks "Edit profile".
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        profile: Profile,
        on_open_profile: Callable[[], None],
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._on_open_profile = on_open_profile

        self._welcome_label: Optional[ctk.CTkLabel] = None
        self._status_label: Optional[ctk.CTkLabel] = None
        self._detail_labels: dict[str, ctk.CTkLabel] = {}

        self._build_ui()
        self.on_profile_changed(profile)

    # ------------------------------------------------------------------
    # Widget creation
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        card = ctk.CTkFrame(
            self,
            fg_color=CONTENT_CARD_BG,
            corner_radius=CORNER_RADIUS,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.pack(padx=PADDING_LG, pady=PADDING_LG, fill="x")

        self._welcome_label = ctk.CTkLabel(
            card,
            text="",
            font=FONT_HEADING,
            text_color=TEXT_PRIMARY,
            anchor="w",
        )
        self._welcome_label.pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, 4))

        self._status_label = ctk.CTkLabel(
            card,
            text="",
            font=FONT_BODY,
            anchor="w",
        )
        self._status_label.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))

        details = ctk.CTkFrame(
            self,
            fg_color=CONTENT_CARD_BG,
            corner_radius=CORNER_RADIUS,
            border_width=1,
            border_color=CARD_BORDER,
        )
        details.pack(padx=PADDING_LG, pady=(0, PADDING_LG), fill="x")
        details.grid_columnconfigure(1, weight=1)

        for row, (key, caption) in enumerate((
            ("email", "EMAIL"),
            ("phone_number", "PHONE"),
            ("location", "LOCATION"),
        )):
            ctk.CTkLabel(
                details,
                text=caption,
                font=FONT_LABEL,
                text_color=TEXT_SECONDARY,
                anchor="w",
            ).grid(row=row, column=0, sticky="w", padx=PADDING_MD, pady=PADDING_SM)
            value = ctk.CTkLabel(
                details,
                text="",
                font=FONT_BODY,
                text_color=TEXT_PRIMARY,
                anchor="w",
            )
            value.grid(row=row, column=1, sticky="ew", padx=PADDING_MD, pady=PADDING_SM)
            self._detail_labels[key] = value

        ctk.CTkButton(
            self,
            text="Edit profile  →",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=40,
            corner_radius=CORNER_RADIUS,
            command=self._on_open_profile,
        ).pack(anchor="w", padx=PADDING_LG)

    # ------------------------------------------------------------------
    # Profile updates
    # ------------------------------------------------------------------

    def on_profile_changed(self, profile: Profile) -> None:
        """Re-bind the labels to *profile*."""
        if self._welcome_label is not None:
            self._welcome_label.configure(text=f"Welcome, {profile.full_name}")
        if self._status_label is not None:
            self._status_label.configure(
                text=f"Account status: {profile.status.capitalize()}",
                text_color=_STATUS_COLOURS.get(profile.status, STATUS_PENDING),
            )
        for key, label in self._detail_labels.items():
            label.configure(text=getattr(profile, key) or "—")
