"""
Session Model.

The identity handle issued by the credential store.  Held and watched by
the client, never owned: the backend creates it on sign-in / sign-up and
it ends on sign-out or token expiry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Session(BaseModel):
    """An authenticated identity bound to an email address."""

    uid: str  # Supabase auth user id
    email: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}
