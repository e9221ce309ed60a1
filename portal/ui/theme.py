"""UI Theme Constants for the Town Portal client.

Centralises all colour, font, and sizing constants for the
CustomTkinter interface.  Council green with a harvest-yellow accent.

Colours are ``(light, dark)`` pairs: CustomTkinter picks the member
matching the current appearance mode, so switching a user's theme is a
single ``ctk.set_appearance_mode()`` call.

This file contains **zero logic**: only ``Final`` constants.
"""

from __future__ import annotations

from typing import Final

Colour = tuple[str, str]

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

BRAND_PRIMARY: Final[str] = "#2E7D32"
BRAND_ACCENT: Final[str] = "#FDD835"

SIDEBAR_BG: Final[Colour] = ("#1B5E20", "#0d1f0e")
SIDEBAR_HOVER: Final[Colour] = ("#2E7D32", "#1b3a1d")
SIDEBAR_ACTIVE: Final[Colour] = ("#388E3C", "#245c27")
SIDEBAR_TEXT: Final[Colour] = ("#f1f8e9", "#e0e0e0")

CONTENT_BG: Final[Colour] = ("#f4f6f2", "#121412")
CONTENT_CARD_BG: Final[Colour] = ("#ffffff", "#1e211e")
CARD_BORDER: Final[Colour] = ("#e0e0e0", "#2c302c")

ACCENT_PRIMARY: Final[Colour] = ("#2E7D32", "#43A047")
ACCENT_HOVER: Final[Colour] = ("#1B5E20", "#2E7D32")
TEXT_PRIMARY: Final[Colour] = ("#1b2a1c", "#e8ece8")
TEXT_SECONDARY: Final[Colour] = ("#6c757d", "#9ea79e")
TEXT_LIGHT: Final[str] = "#ffffff"
TEXT_ON_ACCENT: Final[str] = "#1b2a1c"

# Approval status badges
STATUS_APPROVED: Final[str] = "#2E7D32"
STATUS_PENDING: Final[str] = "#F9A825"
STATUS_REJECTED: Final[str] = "#c62828"

# Input / form
INPUT_BG: Final[Colour] = ("#ffffff", "#262a26")
INPUT_BORDER: Final[Colour] = ("#ced4da", "#3a403a")
ERROR_TEXT: Final[Colour] = ("#c62828", "#ef5350")
SUCCESS_TEXT: Final[Colour] = ("#2E7D32", "#66BB6A")

# Tab / interactive
TAB_HOVER: Final[Colour] = ("#f0f0f0", "#2a2e2a")
LOGOUT_PRIMARY: Final[str] = "#e74c3c"
LOGOUT_HOVER: Final[str] = "#3a1a1a"

# ---------------------------------------------------------------------------
# Fonts (Segoe UI: Windows default, fallback to system)
# ---------------------------------------------------------------------------

FONT_FAMILY: Final[str] = "Segoe UI"
FONT_BRAND: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")
FONT_ICON_LG: Final[tuple[str, int, str]] = (FONT_FAMILY, 24, "bold")
FONT_HEADING: Final[tuple[str, int, str]] = (FONT_FAMILY, 20, "bold")
FONT_SUBTITLE: Final[tuple[str, int]] = (FONT_FAMILY, 12)
FONT_BODY: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_SIDEBAR: Final[tuple[str, int]] = (FONT_FAMILY, 14)
FONT_SIDEBAR_ACTIVE: Final[tuple[str, int, str]] = (FONT_FAMILY, 14, "bold")
FONT_LABEL: Final[tuple[str, int, str]] = (FONT_FAMILY, 11, "bold")
FONT_SMALL: Final[tuple[str, int]] = (FONT_FAMILY, 11)
FONT_CAPTION: Final[tuple[str, int]] = (FONT_FAMILY, 10)
FONT_BUTTON: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")
FONT_CODE: Final[tuple[str, int, str]] = ("Consolas", 22, "bold")

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

SIDEBAR_WIDTH: Final[int] = 250
LOGIN_WINDOW_WIDTH: Final[int] = 480
LOGIN_WINDOW_HEIGHT: Final[int] = 720
MAIN_WINDOW_WIDTH: Final[int] = 1200
MAIN_WINDOW_HEIGHT: Final[int] = 750
CORNER_RADIUS: Final[int] = 8
PADDING_SM: Final[int] = 8
PADDING_MD: Final[int] = 16
PADDING_LG: Final[int] = 24
