"""Registrations View: the back-office approval queue.

Lists resident profiles, filterable by approval status, with Approve
and Reject actions per row.

**Thin UI Rule**: All authorisation and persistence is delegated to
``UserService``; the acting administrator is read from the shared
``SessionManager``.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

import customtkinter as ctk

from portal.auth import SessionManager
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
    FONT_HEADING,
    FONT_SMALL,
    LOGOUT_PRIMARY,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    SUCCESS_TEXT,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_FILTERS: dict[str, Optional[ApprovalStatus]] = {
    "Pending": ApprovalStatus.PENDING,
    "Approved": ApprovalStatus.APPROVED,
    "Rejected": ApprovalStatus.REJECTED,
    "All": None,
}

_STATUS_COLOURS: dict[ApprovalStatus, str] = {
    ApprovalStatus.APPROVED: STATUS_APPROVED,
    ApprovalStatus.PENDING: STATUS_PENDING,
    ApprovalStatus.REJECTED: STATUS_REJECTED,
}


class AdminUsersView(ctk.CTkFrame):
    """Approval queue for resident registrations.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    user_service:
        Service that lists profiles and records decisions.
    session:
        Shared session holder; supplies the acting administrator.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        user_service: UserService,
        session: SessionManager,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._user_service = user_service
        self._session = session
        self._logger = logger
        self._filter_label: str = "Pending"

        self._list_frame: Optional[ctk.CTkScrollableFrame] = None
        self._message_label: Optional[ctk.CTkLabel] = None

        self._build_ui()
        self._reload()

    # ------------------------------------------------------------------
    # Widget creation
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.pack(fill="x", padx=PADDING_LG, pady=(PADDING_LG, PADDING_SM))

        ctk.CTkLabel(
            header,
            text="Registrations",
            font=FONT_HEADING,
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(side="left")

        filter_button = ctk.CTkSegmentedButton(
            header,
            values=list(_FILTERS),
            selected_color=ACCENT_PRIMARY,
            selected_hover_color=ACCENT_HOVER,
            command=self._handle_filter,
        )
        filter_button.set(self._filter_label)
        filter_button.pack(side="right")

        self._message_label = ctk.CTkLabel(
            self, text="", font=FONT_SMALL, anchor="w", text_color=TEXT_SECONDARY,
        )
        self._message_label.pack(fill="x", padx=PADDING_LG)

        self._list_frame = ctk.CTkScrollableFrame(self, fg_color="transparent")
        self._list_frame.pack(
            fill="both", expand=True, padx=PADDING_LG, pady=(PADDING_SM, PADDING_LG),
        )

    def _render_rows(self, profiles: list[Profile]) -> None:
        for child in self._list_frame.winfo_children():
            child.destroy()

        if not profiles:
            ctk.CTkLabel(
                self._list_frame,
                text="No registrations in this queue.",
                font=FONT_BODY,
                text_color=TEXT_SECONDARY,
            ).pack(pady=PADDING_LG)
            return

        for profile in profiles:
            self._render_row(profile)

    def _render_row(self, profile: Profile) -> None:
        row = ctk.CTkFrame(
            self._list_frame,
            fg_color=CONTENT_CARD_BG,
            corner_radius=CORNER_RADIUS,
            border_width=1,
            border_color=CARD_BORDER,
        )
        row.pack(fill="x", pady=(0, PADDING_SM))
        row.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            row,
            text=profile.full_name,
            font=("Segoe UI", 14, "bold"),
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=PADDING_MD, pady=(PADDING_SM, 0))

        contact = " • ".join(
            part for part in (profile.email, profile.phone_number, profile.location)
            if part
        )
        ctk.CTkLabel(
            row, text=contact, font=FONT_SMALL, text_color=TEXT_SECONDARY, anchor="w",
        ).grid(row=1, column=0, sticky="w", padx=PADDING_MD, pady=(0, PADDING_SM))

        ctk.CTkLabel(
            row,
            text=profile.status.capitalize(),
            font=FONT_SMALL,
            text_color=_STATUS_COLOURS.get(profile.status, STATUS_PENDING),
        ).grid(row=0, column=1, rowspan=2, padx=PADDING_SM)

        if profile.status != ApprovalStatus.APPROVED:
            ctk.CTkButton(
                row,
                text="Approve",
                width=90,
                fg_color=STATUS_APPROVED,
                hover_color=ACCENT_HOVER,
                text_color=TEXT_LIGHT,
                command=lambda uid=profile.uid: self._decide(uid, ApprovalStatus.APPROVED),
            ).grid(row=0, column=2, rowspan=2, padx=(0, PADDING_SM))

        if profile.status != ApprovalStatus.REJECTED:
            ctk.CTkButton(
                row,
                text="Reject",
                width=90,
                fg_color=LOGOUT_PRIMARY,
                hover_color=STATUS_REJECTED,
                text_color=TEXT_LIGHT,
                command=lambda uid=profile.uid: self._decide(uid, ApprovalStatus.REJECTED),
            ).grid(row=0, column=3, rowspan=2, padx=(0, PADDING_MD))

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _handle_filter(self, label: str) -> None:
        self._filter_label = label
        self._reload()

    def _reload(self) -> None:
        status = _FILTERS[self._filter_label]
        self._in_background(
            lambda: self._user_service.list_profiles(status),
            self._apply_list,
        )

    def _apply_list(self, result: ServiceResult[list[Profile]]) -> None:
        if result.success:
            self._render_rows(result.data or [])
        else:
            self._message_label.configure(
                text=result.error or "Could not load registrations.",
                text_color=ERROR_TEXT,
            )

    def _decide(self, uid: str, status: ApprovalStatus) -> None:
        actor = self._session.get_session()
        if actor is None:
            self._message_label.configure(
                text="Your session has ended. Please sign in again.",
                text_color=ERROR_TEXT,
            )
            return

        def apply(result: ServiceResult[Profile]) -> None:
            if result.success and result.data is not None:
                self._message_label.configure(
                    text=f"{result.data.full_name} is now {status}.",
                    text_color=SUCCESS_TEXT,
                )
                self._reload()
            else:
                self._message_label.configure(
                    text=result.error or "Could not save the decision.",
                    text_color=ERROR_TEXT,
                )

        self._in_background(
            lambda: self._user_service.set_status(uid, status, actor), apply,
        )

    def _in_background(
        self,
        action: Callable[[], ServiceResult],
        on_result: Callable[[ServiceResult], None],
    ) -> None:
        def worker() -> None:
            result = action()
            self.after(0, on_result, result)

        threading.Thread(target=worker, name="admin-users", daemon=True).start()
