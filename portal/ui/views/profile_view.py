"""Profile View: resident self-service settings.

Lets the signed-in resident edit their contact details, switch between
the light and dark theme, upload a profile photo and change their
password.

**Thin UI Rule**: All validation and persistence is delegated to
``ProfileService``.  Each action runs on a background thread and posts
its ``ServiceResult`` back via ``self.after(0, ...)``.
"""

from __future__ import annotations

import mimetypes
import threading
from pathlib import Path
from tkinter import filedialog
from typing import Callable, Optional

import customtkinter as ctk

from portal.logger import StructuredLogger
from portal.models.enums import Theme
from portal.models.profile import Profile
from portal.models.service_models import ServiceResult
from portal.services.profile_service import ProfileService
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
    FONT_SMALL,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_INPUT_HEIGHT: int = 40
_IMAGE_FILETYPES: list[tuple[str, str]] = [
    ("Images", "*.png *.jpg *.jpeg *.gif *.webp"),
]


class ProfileView(ctk.CTkScrollableFrame):
    """Self-service profile page for residents.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    profile_service:
        Service performing every profile mutation.
    profile:
        Profile at the time the page is first shown.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        profile_service: ProfileService,
        profile: Profile,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._profile_service = profile_service
        self._logger = logger
        self._profile = profile

        # Details card
        self._name_entry: Optional[ctk.CTkEntry] = None
        self._phone_entry: Optional[ctk.CTkEntry] = None
        self._location_entry: Optional[ctk.CTkEntry] = None
        self._details_message: Optional[ctk.CTkLabel] = None
        self._save_button: Optional[ctk.CTkButton] = None

        # Appearance card
        self._theme_switch: Optional[ctk.CTkSwitch] = None
        self._photo_label: Optional[ctk.CTkLabel] = None
        self._photo_button: Optional[ctk.CTkButton] = None
        self._appearance_message: Optional[ctk.CTkLabel] = None

        # Password card
        self._current_pw_entry: Optional[ctk.CTkEntry] = None
        self._new_pw_entry: Optional[ctk.CTkEntry] = None
        self._confirm_pw_entry: Optional[ctk.CTkEntry] = None
        self._password_button: Optional[ctk.CTkButton] = None
        self._password_message: Optional[ctk.CTkLabel] = None

        self._build_ui()
        self._fill_details(profile)
        self.on_profile_changed(profile)

    # ------------------------------------------------------------------
    # Widget creation
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self,
            text="My Profile",
            font=FONT_HEADING,
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(fill="x", padx=PADDING_LG, pady=(PADDING_LG, PADDING_MD))

        self._build_details_card()
        self._build_appearance_card()
        self._build_password_card()

    def _card(self, title: str) -> ctk.CTkFrame:
        card = ctk.CTkFrame(
            self,
            fg_color=CONTENT_CARD_BG,
            corner_radius=CORNER_RADIUS,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.pack(fill="x", padx=PADDING_LG, pady=(0, PADDING_MD))
        ctk.CTkLabel(
            card,
            text=title,
            font=("Segoe UI", 15, "bold"),
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))
        return card

    def _entry(
        self, parent: ctk.CTkFrame, caption: str, *, secret: bool = False,
    ) -> ctk.CTkEntry:
        ctk.CTkLabel(
            parent,
            text=caption,
            font=FONT_LABEL,
            text_color=TEXT_SECONDARY,
            anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(0, 2))
        entry = ctk.CTkEntry(
            parent,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*" if secret else "",
            height=_INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        entry.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_SM))
        return entry

    def _button(
        self, parent: ctk.CTkFrame, text: str, command: Callable[[], None],
    ) -> ctk.CTkButton:
        button = ctk.CTkButton(
            parent,
            text=text,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=38,
            corner_radius=CORNER_RADIUS,
            command=command,
        )
        button.pack(anchor="w", padx=PADDING_MD, pady=(PADDING_SM, 4))
        return button

    def _message_label(self, parent: ctk.CTkFrame) -> ctk.CTkLabel:
        label = ctk.CTkLabel(
            parent, text="", font=FONT_SMALL, anchor="w", text_color=TEXT_SECONDARY,
        )
        label.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))
        return label

    def _build_details_card(self) -> None:
        card = self._card("Contact details")
        self._name_entry = self._entry(card, "FULL NAME")
        self._phone_entry = self._entry(card, "PHONE")
        self._location_entry = self._entry(card, "LOCATION")
        self._save_button = self._button(card, "Save changes", self._handle_save_details)
        self._details_message = self._message_label(card)

    def _build_appearance_card(self) -> None:
        card = self._card("Appearance")

        self._theme_switch = ctk.CTkSwitch(
            card,
            text="Dark mode",
            font=FONT_BODY,
            text_color=TEXT_PRIMARY,
            progress_color=ACCENT_PRIMARY,
            command=self._handle_theme_toggle,
        )
        self._theme_switch.pack(anchor="w", padx=PADDING_MD, pady=PADDING_SM)

        self._photo_label = ctk.CTkLabel(
            card, text="", font=FONT_SMALL, text_color=TEXT_SECONDARY, anchor="w",
        )
        self._photo_label.pack(fill="x", padx=PADDING_MD)
        self._photo_button = self._button(
            card, "Change photo…", self._handle_choose_photo,
        )
        self._appearance_message = self._message_label(card)

    def _build_password_card(self) -> None:
        card = self._card("Change password")
        self._current_pw_entry = self._entry(card, "CURRENT PASSWORD", secret=True)
        self._new_pw_entry = self._entry(card, "NEW PASSWORD", secret=True)
        self._confirm_pw_entry = self._entry(card, "CONFIRM NEW PASSWORD", secret=True)
        self._password_button = self._button(
            card, "Update password", self._handle_change_password,
        )
        self._password_message = self._message_label(card)

    # ------------------------------------------------------------------
    # Profile updates
    # ------------------------------------------------------------------

    def on_profile_changed(self, profile: Profile) -> None:
        """Sync the theme switch and photo caption with *profile*.

        Text entries are left alone so an edit in progress survives a
        background refresh.
        """
        self._profile = profile
        if self._theme_switch is not None:
            if profile.theme == Theme.DARK:
                self._theme_switch.select()
            else:
                self._theme_switch.deselect()
        if self._photo_label is not None:
            caption = "Photo uploaded" if profile.photo_url else "No photo yet"
            self._photo_label.configure(text=caption)

    def _fill_details(self, profile: Profile) -> None:
        for entry, value in (
            (self._name_entry, profile.full_name),
            (self._phone_entry, profile.phone_number),
            (self._location_entry, profile.location),
        ):
            if entry is not None:
                entry.delete(0, "end")
                entry.insert(0, value or "")

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _handle_save_details(self) -> None:
        full_name = self._name_entry.get()
        phone = self._phone_entry.get()
        location = self._location_entry.get()
        self._save_button.configure(state="disabled")
        self._run(
            lambda: self._profile_service.update_details(full_name, phone, location),
            self._details_message,
            "Details saved.",
            on_done=lambda: self._save_button.configure(state="normal"),
        )

    def _handle_theme_toggle(self) -> None:
        theme = Theme.DARK if self._theme_switch.get() else Theme.LIGHT
        self._run(
            lambda: self._profile_service.set_theme(theme),
            self._appearance_message,
            f"Switched to {theme} theme.",
        )

    def _handle_choose_photo(self) -> None:
        selected = filedialog.askopenfilename(
            title="Choose a profile photo",
            filetypes=_IMAGE_FILETYPES,
        )
        if not selected:
            return

        path = Path(selected)
        content_type = mimetypes.guess_type(path.name)[0] or ""
        try:
            data = path.read_bytes()
        except OSError as exc:
            self._logger.warning("Cannot read photo %s: %s", path, exc)
            self._show(self._appearance_message, "Could not read the file.", ok=False)
            return

        self._photo_button.configure(state="disabled", text="Uploading...")
        self._run(
            lambda: self._profile_service.upload_photo(path.name, data, content_type),
            self._appearance_message,
            "Photo updated.",
            on_done=lambda: self._photo_button.configure(
                state="normal", text="Change photo…",
            ),
        )

    def _handle_change_password(self) -> None:
        current = self._current_pw_entry.get()
        new = self._new_pw_entry.get()
        confirm = self._confirm_pw_entry.get()
        if not current or not new:
            self._show(
                self._password_message, "Please fill in all password fields.", ok=False,
            )
            return

        self._password_button.configure(state="disabled")

        def on_done() -> None:
            self._password_button.configure(state="normal")
            for entry in (
                self._current_pw_entry, self._new_pw_entry, self._confirm_pw_entry,
            ):
                entry.delete(0, "end")

        self._run(
            lambda: self._profile_service.change_password(current, new, confirm),
            self._password_message,
            "Password updated.",
            on_done=on_done,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        action: Callable[[], ServiceResult],
        target: Optional[ctk.CTkLabel],
        success_text: str,
        on_done: Optional[Callable[[], None]] = None,
    ) -> None:
        """Run *action* off the UI thread and report into *target*."""

        def worker() -> None:
            try:
                result = action()
            except Exception as exc:
                self._logger.error("Profile action crashed: %s", exc)
                result = ServiceResult(
                    success=False, error="Something went wrong. Please try again.",
                )

            def finish() -> None:
                if result.success:
                    self._show(target, success_text, ok=True)
                else:
                    self._show(target, result.error or "Update failed.", ok=False)
                if on_done is not None:
                    on_done()

            self.after(0, finish)

        threading.Thread(target=worker, name="profile-action", daemon=True).start()

    @staticmethod
    def _show(target: Optional[ctk.CTkLabel], text: str, *, ok: bool) -> None:
        if target is not None:
            target.configure(text=text, text_color=SUCCESS_TEXT if ok else ERROR_TEXT)
