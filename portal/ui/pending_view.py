"""Pending Approval View.

Shown in place of the resident portal while the signed-in resident's
profile is not approved.  The shell swaps it for the dashboard as soon
as the profile watcher reports the approval.

**Thin UI Rule**: display only; logout is an injected callback.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from portal.models.enums import ApprovalStatus
from portal.models.profile import Profile
from portal.ui.theme import (
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    LOGOUT_PRIMARY,
    PADDING_LG,
    PADDING_MD,
    STATUS_PENDING,
    STATUS_REJECTED,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_CARD_WIDTH: int = 460


class PendingApprovalView(ctk.CTkFrame):
    """Centred notice explaining that the account awaits review.

    Parameters
    ----------
    parent:
        The root window.
    profile:
        The signed-in resident's profile (may be ``None`` briefly).
    on_logout:
        Called when the user clicks "Log Out".
    """

    def __init__(
        self,
        parent: ctk.CTk,
        profile: Optional[Profile],
        on_logout: Callable[[], None],
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._on_logout = on_logout
        self._build_ui(profile)

    def _build_ui(self, profile: Optional[Profile]) -> None:
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)
        self.grid_columnconfigure(0, weight=1)

        card = ctk.CTkFrame(
            self,
            width=_CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.grid(row=1, column=0)

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        rejected = profile is not None and profile.status == ApprovalStatus.REJECTED
        heading = "Registration not approved" if rejected else "Awaiting approval"
        badge_colour = STATUS_REJECTED if rejected else STATUS_PENDING

        ctk.CTkLabel(
            inner,
            text="●",
            font=("Segoe UI", 28),
            text_color=badge_colour,
        ).pack(pady=(0, PADDING_MD))

        ctk.CTkLabel(
            inner,
            text=heading,
            font=FONT_HEADING,
            text_color=TEXT_PRIMARY,
        ).pack(pady=(0, PADDING_MD))

        name = profile.full_name if profile is not None else "there"
        if rejected:
            body = (
                f"Hello {name}, the council could not approve your "
                "registration. Please contact the town office for details."
            )
        else:
            body = (
                f"Hello {name}, your registration is being reviewed by the "
                "council. This page will open your dashboard automatically "
                "once your account is approved."
            )
        ctk.CTkLabel(
            inner,
            text=body,
            font=FONT_BODY,
            text_color=TEXT_SECONDARY,
            wraplength=_CARD_WIDTH - 80,
            justify="center",
        ).pack(pady=(0, PADDING_LG))

        ctk.CTkButton(
            inner,
            text="Log Out",
            font=FONT_BUTTON,
            fg_color=LOGOUT_PRIMARY,
            hover_color=STATUS_REJECTED,
            text_color=TEXT_LIGHT,
            height=40,
            corner_radius=CORNER_RADIUS,
            command=self._on_logout,
        ).pack(fill="x")
