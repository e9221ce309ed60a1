"""Login View: Sign-in, Registration and Verification Screen.

Presents the entry screen of one portal area.  The resident area has
Sign In / Register tabs; the staff area has Sign In only.  After the
credentials are accepted the card switches to the verification step,
where the user types the 6-digit code that was emailed to them or goes
back to the credentials form.

**Thin UI Rule**: This module contains ZERO business logic.  It
gathers inputs, delegates to ``AuthService``, and displays results.
"""

from __future__ import annotations

import threading
import tkinter as tk
from typing import Callable, Optional

import customtkinter as ctk

from portal.logger import StructuredLogger
from portal.models.auth_models import AuthResult
from portal.models.enums import AuthStep, UserRole
from portal.services.auth_service import AuthService
from portal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    BRAND_ACCENT,
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BRAND,
    FONT_BUTTON,
    FONT_CAPTION,
    FONT_CODE,
    FONT_ICON_LG,
    FONT_LABEL,
    FONT_SMALL,
    FONT_SUBTITLE,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TAB_HOVER,
    TEXT_LIGHT,
    TEXT_ON_ACCENT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_CARD_WIDTH: int = 420
_TAB_HEIGHT: int = 42
_INPUT_HEIGHT: int = 44
_BUTTON_HEIGHT: int = 48
_BRAND_ICON_SIZE: int = 56

_SIGN_IN_TEXT: str = "Sign In  →"
_VERIFY_TEXT: str = "Verify Code  →"
_REGISTER_TEXT: str = "Create Account  →"


class LoginView(ctk.CTkFrame):
    """Full-screen entry frame for one portal area.

    Delegates the whole sign-in protocol to the injected ``AuthService``:

    - Credential submission (which sends the verification code)
    - Code verification and "Back to login"
    - Resident registration
    - Password reset

    Parameters
    ----------
    parent:
        The root ``CTk`` window this frame belongs to.
    auth_service:
        Controller owning the sign-in state machine.
    area:
        ``UserRole.NATIVE`` for the resident portal, ``UserRole.ADMIN``
        for the back office.
    on_login_success:
        Called on the main thread with the verified ``AuthResult``.
    on_switch_area:
        Called with the other area when the user follows the footer link.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        auth_service: AuthService,
        area: UserRole,
        on_login_success: Callable[[AuthResult], None],
        on_switch_area: Callable[[UserRole], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._parent: ctk.CTk = parent
        self._auth_service: AuthService = auth_service
        self._area: UserRole = area
        self._on_login_success = on_login_success
        self._on_switch_area = on_switch_area
        self._logger: StructuredLogger = logger

        self._active_tab: str = "sign_in"

        # Key bindings fire even while a button is disabled
        self._login_in_flight: bool = False
        self._verify_in_flight: bool = False
        self._attempt: int = 0

        # Notice shown above the form (e.g. "Logged out due to inactivity")
        self._notice_label: Optional[ctk.CTkLabel] = None

        # Sign In widgets
        self._email_entry: Optional[ctk.CTkEntry] = None
        self._password_entry: Optional[ctk.CTkEntry] = None
        self._login_button: Optional[ctk.CTkButton] = None
        self._error_label: Optional[ctk.CTkLabel] = None

        # Forgot Password widgets
        self._forgot_password_frame: Optional[ctk.CTkFrame] = None
        self._forgot_email_entry: Optional[ctk.CTkEntry] = None
        self._forgot_button: Optional[ctk.CTkButton] = None
        self._forgot_message_label: Optional[ctk.CTkLabel] = None

        # Register widgets (resident area only)
        self._reg_name_entry: Optional[ctk.CTkEntry] = None
        self._reg_email_entry: Optional[ctk.CTkEntry] = None
        self._reg_phone_entry: Optional[ctk.CTkEntry] = None
        self._reg_location_entry: Optional[ctk.CTkEntry] = None
        self._reg_password_entry: Optional[ctk.CTkEntry] = None
        self._reg_button: Optional[ctk.CTkButton] = None
        self._reg_error_label: Optional[ctk.CTkLabel] = None
        self._reg_success_label: Optional[ctk.CTkLabel] = None

        # Verification step widgets
        self._otp_hint_label: Optional[ctk.CTkLabel] = None
        self._otp_entry: Optional[ctk.CTkEntry] = None
        self._otp_button: Optional[ctk.CTkButton] = None
        self._otp_error_label: Optional[ctk.CTkLabel] = None

        # Tab buttons and content frames
        self._tab_bar: Optional[ctk.CTkFrame] = None
        self._sign_in_tab: Optional[ctk.CTkButton] = None
        self._register_tab: Optional[ctk.CTkButton] = None
        self._credentials_frame: Optional[ctk.CTkFrame] = None
        self._sign_in_frame: Optional[ctk.CTkFrame] = None
        self._register_frame: Optional[ctk.CTkFrame] = None
        self._otp_frame: Optional[ctk.CTkFrame] = None

        self._build_ui()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def area(self) -> UserRole:
        return self._area

    def show_message(self, message: str) -> None:
        """Display an informational notice above the form."""
        if self._notice_label is not None:
            self._notice_label.configure(text=message)
            self._notice_label.pack(fill="x", pady=(0, PADDING_SM))

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        """Create the centred card with brand header and form frames."""
        self.grid_rowconfigure(0, weight=1)      # top spacer
        self.grid_rowconfigure(1, weight=0)      # card row (natural size)
        self.grid_rowconfigure(2, weight=0)      # area switch row
        self.grid_rowconfigure(3, weight=1)      # bottom spacer
        self.grid_columnconfigure(0, weight=1)

        self._card = ctk.CTkFrame(
            self,
            width=_CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        self._card.grid(row=1, column=0, pady=(0, PADDING_SM))

        inner = ctk.CTkFrame(self._card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        # -- Brand icon (council crest) --
        icon_frame = ctk.CTkFrame(
            inner,
            width=_BRAND_ICON_SIZE,
            height=_BRAND_ICON_SIZE,
            corner_radius=14,
            fg_color=ACCENT_PRIMARY,
        )
        icon_frame.pack(pady=(0, 12))
        icon_frame.pack_propagate(False)

        ctk.CTkLabel(
            icon_frame,
            text="⌂",
            font=FONT_ICON_LG,
            text_color=TEXT_LIGHT,
        ).place(relx=0.5, rely=0.5, anchor="center")

        ctk.CTkLabel(
            inner,
            text="Town Portal",
            font=FONT_BRAND,
            text_color=TEXT_PRIMARY,
        ).pack(pady=(0, 2))

        subtitle = (
            "Resident Services" if self._area == UserRole.NATIVE
            else "Council Back Office"
        )
        ctk.CTkLabel(
            inner,
            text=subtitle,
            font=FONT_SUBTITLE,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(0, PADDING_LG))

        self._notice_label = ctk.CTkLabel(
            inner,
            text="",
            font=FONT_SMALL,
            text_color=TEXT_ON_ACCENT,
            fg_color=BRAND_ACCENT,
            corner_radius=CORNER_RADIUS,
            wraplength=_CARD_WIDTH - 100,
        )
        # Not packed until show_message()

        # -- Credentials step (tabs + forms) --
        self._credentials_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._credentials_frame.pack(fill="both", expand=True)

        if self._area == UserRole.NATIVE:
            self._build_tab_bar(self._credentials_frame)

        self._sign_in_frame = ctk.CTkFrame(
            self._credentials_frame, fg_color="transparent",
        )
        self._build_sign_in_tab(self._sign_in_frame)
        self._sign_in_frame.pack(fill="both", expand=True)

        if self._area == UserRole.NATIVE:
            self._register_frame = ctk.CTkFrame(
                self._credentials_frame, fg_color="transparent",
            )
            self._build_register_tab(self._register_frame)

        # -- Verification step (hidden until credentials are accepted) --
        self._otp_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._build_otp_step(self._otp_frame)

        # -- Area switch link --
        other_area = (
            UserRole.ADMIN if self._area == UserRole.NATIVE else UserRole.NATIVE
        )
        link_text = (
            "Council staff? Sign in to the back office"
            if self._area == UserRole.NATIVE
            else "Resident? Go to the resident portal"
        )
        ctk.CTkButton(
            self,
            text=link_text,
            font=FONT_CAPTION,
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=TEXT_SECONDARY,
            height=24,
            command=lambda: self._on_switch_area(other_area),
        ).grid(row=2, column=0, pady=(PADDING_SM, 0))

    def _build_tab_bar(self, parent: ctk.CTkFrame) -> None:
        """Sign In / Register tab buttons for the resident area."""
        self._tab_bar = ctk.CTkFrame(parent, fg_color="transparent", height=_TAB_HEIGHT)
        self._tab_bar.pack(fill="x", pady=(0, PADDING_MD))
        self._tab_bar.pack_propagate(False)
        self._tab_bar.grid_columnconfigure(0, weight=1)
        self._tab_bar.grid_columnconfigure(1, weight=1)

        self._sign_in_tab = ctk.CTkButton(
            self._tab_bar,
            text="Sign In",
            font=("Segoe UI", 13, "bold"),
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=ACCENT_PRIMARY,
            height=_TAB_HEIGHT,
            corner_radius=0,
            border_width=2,
            border_color=ACCENT_PRIMARY,
            command=lambda: self._switch_tab("sign_in"),
        )
        self._sign_in_tab.grid(row=0, column=0, sticky="nsew")

        self._register_tab = ctk.CTkButton(
            self._tab_bar,
            text="Register",
            font=("Segoe UI", 13),
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=TEXT_SECONDARY,
            height=_TAB_HEIGHT,
            corner_radius=0,
            border_width=1,
            border_color=INPUT_BORDER,
            command=lambda: self._switch_tab("register"),
        )
        self._register_tab.grid(row=0, column=1, sticky="nsew")

    def _labelled_entry(
        self,
        parent: ctk.CTkFrame,
        label: str,
        placeholder: str,
        *,
        secret: bool = False,
        bottom_pad: int = PADDING_MD,
    ) -> ctk.CTkEntry:
        """Pack an uppercase caption and an entry; return the entry."""
        ctk.CTkLabel(
            parent,
            text=label,
            font=FONT_LABEL,
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(fill="x", pady=(0, 4))

        entry = ctk.CTkEntry(
            parent,
            placeholder_text=placeholder,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*" if secret else "",
            height=_INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        entry.pack(fill="x", pady=(0, bottom_pad))
        return entry

    def _build_sign_in_tab(self, parent: ctk.CTkFrame) -> None:
        """Build the Sign In form fields inside the given parent frame."""
        ctk.CTkFrame(parent, fg_color="transparent", height=PADDING_SM).pack()

        self._email_entry = self._labelled_entry(
            parent, "EMAIL ADDRESS", "name@example.com",
        )
        self._password_entry = self._labelled_entry(
            parent,
            "PASSWORD",
            "••••••••",
            secret=True,
            bottom_pad=PADDING_LG,
        )

        self._login_button = ctk.CTkButton(
            parent,
            text=_SIGN_IN_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=_BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_login,
        )
        self._login_button.pack(fill="x", pady=(0, PADDING_SM))

        self._error_label = ctk.CTkLabel(
            parent,
            text="",
            font=FONT_SMALL,
            text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 100,
        )
        # Not packed until an error is shown

        ctk.CTkButton(
            parent,
            text="Forgot Password?",
            font=("Segoe UI", 11),
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=ACCENT_PRIMARY,
            height=28,
            corner_radius=CORNER_RADIUS,
            command=self._show_forgot_password,
        ).pack(side="bottom", pady=(PADDING_SM, 0))

        # Forgot Password inline form (hidden by default)
        self._forgot_password_frame = ctk.CTkFrame(parent, fg_color="transparent")

        ctk.CTkLabel(
            self._forgot_password_frame,
            text="Enter your email to receive a reset link:",
            font=FONT_SMALL,
            text_color=TEXT_SECONDARY,
        ).pack(fill="x", pady=(0, 4))

        self._forgot_email_entry = ctk.CTkEntry(
            self._forgot_password_frame,
            placeholder_text="name@example.com",
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            height=_INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        self._forgot_email_entry.pack(fill="x", pady=(0, PADDING_SM))

        self._forgot_button = ctk.CTkButton(
            self._forgot_password_frame,
            text="Send Reset Link",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=36,
            corner_radius=CORNER_RADIUS,
            command=self._handle_forgot_password,
        )
        self._forgot_button.pack(fill="x", pady=(0, PADDING_SM))

        self._forgot_message_label = ctk.CTkLabel(
            self._forgot_password_frame,
            text="",
            font=FONT_SMALL,
            text_color=TEXT_SECONDARY,
            wraplength=_CARD_WIDTH - 100,
        )
        self._forgot_message_label.pack(fill="x")

        self._email_entry.bind("<Return>", self._on_enter_key)
        self._password_entry.bind("<Return>", self._on_enter_key)

    def _build_register_tab(self, parent: ctk.CTkFrame) -> None:
        """Build the resident registration form."""
        ctk.CTkFrame(parent, fg_color="transparent", height=PADDING_SM).pack()

        self._reg_name_entry = self._labelled_entry(
            parent, "FULL NAME", "e.g. Ama Mensah",
        )
        self._reg_email_entry = self._labelled_entry(
            parent, "EMAIL ADDRESS", "name@example.com",
        )

        # Phone + location side by side
        contact_row = ctk.CTkFrame(parent, fg_color="transparent")
        contact_row.pack(fill="x", pady=(0, PADDING_MD))
        contact_row.grid_columnconfigure(0, weight=1)
        contact_row.grid_columnconfigure(1, weight=1)

        phone_col = ctk.CTkFrame(contact_row, fg_color="transparent")
        phone_col.grid(row=0, column=0, sticky="ew")
        self._reg_phone_entry = self._labelled_entry(
            phone_col, "PHONE", "Optional", bottom_pad=0,
        )

        location_col = ctk.CTkFrame(contact_row, fg_color="transparent")
        location_col.grid(row=0, column=1, sticky="ew", padx=(PADDING_SM, 0))
        self._reg_location_entry = self._labelled_entry(
            location_col, "LOCATION", "Optional", bottom_pad=0,
        )

        self._reg_password_entry = self._labelled_entry(
            parent,
            "PASSWORD",
            "At least 6 characters",
            secret=True,
            bottom_pad=PADDING_LG,
        )

        self._reg_button = ctk.CTkButton(
            parent,
            text=_REGISTER_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=_BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_register,
        )
        self._reg_button.pack(fill="x", pady=(0, PADDING_SM))

        self._reg_error_label = ctk.CTkLabel(
            parent,
            text="",
            font=FONT_SMALL,
            text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 100,
        )
        self._reg_success_label = ctk.CTkLabel(
            parent,
            text="",
            font=FONT_SMALL,
            text_color=SUCCESS_TEXT,
            wraplength=_CARD_WIDTH - 100,
        )

        ctk.CTkLabel(
            parent,
            text="New accounts are reviewed by the council before first sign-in.",
            font=FONT_CAPTION,
            text_color=TEXT_SECONDARY,
        ).pack(side="bottom", pady=(PADDING_SM, 0))

    def _build_otp_step(self, parent: ctk.CTkFrame) -> None:
        """Build the verification-code form."""
        ctk.CTkLabel(
            parent,
            text="Check your email",
            font=("Segoe UI", 16, "bold"),
            text_color=TEXT_PRIMARY,
        ).pack(pady=(PADDING_SM, 4))

        self._otp_hint_label = ctk.CTkLabel(
            parent,
            text="",
            font=FONT_SMALL,
            text_color=TEXT_SECONDARY,
            wraplength=_CARD_WIDTH - 100,
        )
        self._otp_hint_label.pack(fill="x", pady=(0, PADDING_MD))

        self._otp_entry = ctk.CTkEntry(
            parent,
            placeholder_text="000000",
            font=FONT_CODE,
            justify="center",
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            height=56,
            corner_radius=CORNER_RADIUS,
        )
        self._otp_entry.pack(fill="x", pady=(0, PADDING_LG))
        self._otp_entry.bind("<Return>", lambda _e: self._handle_verify())

        self._otp_button = ctk.CTkButton(
            parent,
            text=_VERIFY_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=_BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_verify,
        )
        self._otp_button.pack(fill="x", pady=(0, PADDING_SM))

        self._otp_error_label = ctk.CTkLabel(
            parent,
            text="",
            font=FONT_SMALL,
            text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 100,
        )

        ctk.CTkButton(
            parent,
            text="←  Back to login",
            font=("Segoe UI", 11),
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=ACCENT_PRIMARY,
            height=28,
            corner_radius=CORNER_RADIUS,
            command=self._handle_back_to_login,
        ).pack(side="bottom", pady=(PADDING_SM, 0))

    # ------------------------------------------------------------------
    # Step / tab switching
    # ------------------------------------------------------------------

    def _switch_tab(self, tab: str) -> None:
        """Switch between the Sign In and Register tabs."""
        if tab == self._active_tab or self._register_frame is None:
            return
        self._active_tab = tab
        self._clear_error()
        self._clear_reg_messages()

        active_style = {
            "text_color": ACCENT_PRIMARY,
            "border_color": ACCENT_PRIMARY,
            "border_width": 2,
            "font": ("Segoe UI", 13, "bold"),
        }
        idle_style = {
            "text_color": TEXT_SECONDARY,
            "border_color": INPUT_BORDER,
            "border_width": 1,
            "font": ("Segoe UI", 13),
        }

        if tab == "sign_in":
            self._register_frame.pack_forget()
            self._sign_in_frame.pack(fill="both", expand=True)
            self._sign_in_tab.configure(**active_style)
            self._register_tab.configure(**idle_style)
        else:
            self._sign_in_frame.pack_forget()
            self._register_frame.pack(fill="both", expand=True)
            self._register_tab.configure(**active_style)
            self._sign_in_tab.configure(**idle_style)

    def _show_otp_step(self, result: AuthResult) -> None:
        """Swap the credentials form for the verification-code form."""
        self._attempt = result.attempt
        self._clear_error()
        self._credentials_frame.pack_forget()
        self._otp_hint_label.configure(
            text=result.message or "Enter the 6-digit code we emailed you.",
        )
        self._otp_entry.delete(0, "end")
        self._clear_otp_error()
        self._otp_frame.pack(fill="both", expand=True)
        self._otp_entry.focus_set()

    def _show_credentials_step(self, error: Optional[str] = None) -> None:
        """Return to the credentials form, optionally showing *error*."""
        self._otp_frame.pack_forget()
        self._credentials_frame.pack(fill="both", expand=True)
        if self._password_entry is not None:
            self._password_entry.delete(0, "end")
        if error:
            self._show_error(error)

    # ------------------------------------------------------------------
    # Event Handlers: Sign In
    # ------------------------------------------------------------------

    def _on_enter_key(self, event: tk.Event[tk.Misc]) -> None:
        """Trigger the login flow when the user presses Enter."""
        self._handle_login()

    def _handle_login(self) -> None:
        """Gather inputs, check they are filled in, start background auth."""
        if self._login_in_flight:
            return
        email = self._email_entry.get().strip()
        password = self._password_entry.get()

        if not email or not password:
            self._show_error("Please enter email and password.")
            return

        self._set_loading(True)
        self._clear_error()

        threading.Thread(
            target=self._authenticate,
            args=(email, password),
            name="auth-submit",
            daemon=True,
        ).start()

    def _authenticate(self, email: str, password: str) -> None:
        """Background thread: delegate to ``AuthService.submit_credentials``.

        All UI mutations are dispatched back via ``self.after(0, ...)``.
        """
        try:
            result = self._auth_service.submit_credentials(email, password)

            if result.success:
                self.after(0, self._show_otp_step, result)
            else:
                message = result.error_message or "Sign-in failed."
                self.after(0, self._show_error, message)
        except Exception as exc:
            self._logger.error("Sign-in crashed: %s", exc)
            self.after(0, self._show_error, "Sign-in failed. Please try again.")
        finally:
            self.after(0, self._set_loading, False)

    # ------------------------------------------------------------------
    # Event Handlers: Verification
    # ------------------------------------------------------------------

    def _handle_verify(self) -> None:
        if self._verify_in_flight:
            return
        code = self._otp_entry.get().strip()
        if not code:
            self._show_otp_error("Please enter the verification code.")
            return

        self._set_otp_loading(True)
        self._clear_otp_error()

        threading.Thread(
            target=self._verify,
            args=(code,),
            name="auth-verify",
            daemon=True,
        ).start()

    def _verify(self, code: str) -> None:
        """Background thread: delegate to ``AuthService.verify_otp``."""
        try:
            result = self._auth_service.verify_otp(code)

            if result.success:
                self.after(0, self._on_login_success, result)
            elif result.step == AuthStep.OTP_PENDING:
                message = result.error_message or "Invalid verification code."
                self.after(0, self._show_otp_error, message)
            else:
                # The attempt is over; the user must sign in again.
                self.after(0, self._show_credentials_step, result.error_message)
        except Exception as exc:
            self._logger.error("Code verification crashed: %s", exc)
            self.after(
                0, self._show_otp_error, "Verification failed. Please try again.",
            )
        finally:
            self.after(0, self._set_otp_loading, False)

    def _handle_back_to_login(self) -> None:
        """Abandon the attempt; the backend sign-out runs off the UI thread.

        The attempt number travels with the cancel, so a sign-in started
        before the thread runs is left alone.
        """
        self._show_credentials_step()
        threading.Thread(
            target=self._auth_service.back_to_login,
            args=(self._attempt,),
            name="auth-cancel",
            daemon=True,
        ).start()

    # ------------------------------------------------------------------
    # Event Handlers: Registration
    # ------------------------------------------------------------------

    def _handle_register(self) -> None:
        """Gather inputs, validate non-empty, start background registration."""
        full_name = self._reg_name_entry.get().strip()
        email = self._reg_email_entry.get().strip()
        phone = self._reg_phone_entry.get().strip()
        location = self._reg_location_entry.get().strip()
        password = self._reg_password_entry.get()

        self._clear_reg_messages()

        if not all([full_name, email, password]):
            self._show_reg_error("Name, email and password are required.")
            return

        self._set_reg_loading(True)
        threading.Thread(
            target=self._do_register,
            args=(full_name, email, password, phone, location),
            name="auth-register",
            daemon=True,
        ).start()

    def _do_register(
        self,
        full_name: str,
        email: str,
        password: str,
        phone: str,
        location: str,
    ) -> None:
        """Background thread: delegate to ``AuthService.register_native``."""
        try:
            result = self._auth_service.register_native(
                full_name, email, password,
                phone_number=phone, location=location,
            )
            self.after(0, self._show_registration_result, result)
        except Exception as exc:
            self._logger.error("Registration crashed: %s", exc)
            self.after(
                0, self._show_reg_error, "Registration failed. Please try again.",
            )
        finally:
            self.after(0, self._set_reg_loading, False)

    def _show_registration_result(self, result: AuthResult) -> None:
        if not result.success:
            self._show_reg_error(result.error_message or "Registration failed.")
            return

        self._reg_success_label.configure(text=result.message or "")
        self._reg_success_label.pack(fill="x")
        for entry in (
            self._reg_name_entry,
            self._reg_email_entry,
            self._reg_phone_entry,
            self._reg_location_entry,
            self._reg_password_entry,
        ):
            entry.delete(0, "end")

    # ------------------------------------------------------------------
    # Event Handlers: Forgot Password
    # ------------------------------------------------------------------

    def _show_forgot_password(self) -> None:
        """Toggle visibility of the Forgot Password inline form."""
        if self._forgot_password_frame.winfo_manager():
            self._forgot_password_frame.pack_forget()
        else:
            self._forgot_password_frame.pack(fill="x", pady=(PADDING_SM, 0))
            self._forgot_message_label.configure(text="")

    def _handle_forgot_password(self) -> None:
        """Delegate password reset to AuthService."""
        email = self._forgot_email_entry.get().strip()
        if not email:
            self._forgot_message_label.configure(
                text="Please enter your email address.",
                text_color=ERROR_TEXT,
            )
            return

        self._forgot_button.configure(text="Sending...", state="disabled")

        def do_reset() -> None:
            result = self._auth_service.request_password_reset(email)

            def show_reset_result() -> None:
                if result.success:
                    text, colour = result.message or "", SUCCESS_TEXT
                else:
                    text, colour = result.error_message or "", ERROR_TEXT
                self._forgot_message_label.configure(text=text, text_color=colour)
                self._forgot_button.configure(
                    text="Send Reset Link", state="normal",
                )

            self.after(0, show_reset_result)

        threading.Thread(target=do_reset, name="auth-reset", daemon=True).start()

    # ------------------------------------------------------------------
    # UI Helper Methods
    # ------------------------------------------------------------------

    def _show_error(self, message: str) -> None:
        """Display a red error message below the login button."""
        if self._error_label is not None:
            self._error_label.configure(text=message)
            self._error_label.pack(fill="x", after=self._login_button)

    def _clear_error(self) -> None:
        if self._error_label is not None:
            self._error_label.configure(text="")
            self._error_label.pack_forget()

    def _show_otp_error(self, message: str) -> None:
        if self._otp_error_label is not None:
            self._otp_error_label.configure(text=message)
            self._otp_error_label.pack(fill="x", after=self._otp_button)

    def _clear_otp_error(self) -> None:
        if self._otp_error_label is not None:
            self._otp_error_label.configure(text="")
            self._otp_error_label.pack_forget()

    def _show_reg_error(self, message: str) -> None:
        if self._reg_error_label is not None:
            self._reg_error_label.configure(text=message)
            self._reg_error_label.pack(fill="x", after=self._reg_button)

    def _clear_reg_messages(self) -> None:
        """Hide both error and success labels in the Register tab."""
        for label in (self._reg_error_label, self._reg_success_label):
            if label is not None:
                label.configure(text="")
                label.pack_forget()

    def _set_loading(self, loading: bool) -> None:
        """Toggle the Sign In button so the user cannot double-submit."""
        self._login_in_flight = loading
        if self._login_button is None:
            return
        if loading:
            self._login_button.configure(text="Signing in...", state="disabled")
        else:
            self._login_button.configure(text=_SIGN_IN_TEXT, state="normal")

    def _set_otp_loading(self, loading: bool) -> None:
        self._verify_in_flight = loading
        if self._otp_button is None:
            return
        if loading:
            self._otp_button.configure(text="Verifying...", state="disabled")
        else:
            self._otp_button.configure(text=_VERIFY_TEXT, state="normal")

    def _set_reg_loading(self, loading: bool) -> None:
        if self._reg_button is None:
            return
        if loading:
            self._reg_button.configure(text="Creating account...", state="disabled")
        else:
            self._reg_button.configure(text=_REGISTER_TEXT, state="normal")
