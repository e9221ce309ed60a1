"""
Profile Model.

Pydantic model for the ``profiles`` row keyed by the auth user id.
Exactly one profile exists per session uid, or none at all.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from portal.models.enums import ApprovalStatus, ProfileLoad, Theme, UserRole


class Profile(BaseModel):
    """Durable per-user record: role, approval status and preferences.

    Created at registration with ``status="pending"``; afterwards only
    the back office changes ``status`` and only the owner changes
    ``theme`` / ``photo_url`` / contact details.
    """

    uid: str  # Supabase auth user id
    email: str
    full_name: str
    phone_number: Optional[str] = None
    location: Optional[str] = None
    role: UserRole = UserRole.NATIVE
    status: ApprovalStatus = ApprovalStatus.PENDING
    theme: Theme = Theme.LIGHT
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @property
    def is_approved(self) -> bool:
        return self.status == ApprovalStatus.APPROVED


class ProfileState(BaseModel):
    """Snapshot emitted by the profile source.

    ``load`` is ``LOADING`` until the first read settles, then either
    ``NONE`` (no row for the uid) or ``VALUE`` with ``profile`` set.
    """

    load: ProfileLoad = ProfileLoad.LOADING
    profile: Optional[Profile] = None

    model_config = {"frozen": True}

    @classmethod
    def loading(cls) -> "ProfileState":
        return cls(load=ProfileLoad.LOADING)

    @classmethod
    def none(cls) -> "ProfileState":
        return cls(load=ProfileLoad.NONE)

    @classmethod
    def of(cls, profile: Optional[Profile]) -> "ProfileState":
        if profile is None:
            return cls.none()
        return cls(load=ProfileLoad.VALUE, profile=profile)

    @property
    def is_loading(self) -> bool:
        return self.load == ProfileLoad.LOADING
