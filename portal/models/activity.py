"""
Portal Activity and Admin Notification Models.

Rows written to the ``portal_activities`` and ``admin_notifications``
tables.  Both are append-only from the client's point of view.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional, Union

from pydantic import BaseModel, Field

NotificationValue = Union[str, int, float, bool, None]


class ActivityType(StrEnum):
    """Category of a portal activity entry."""

    AUTH = "auth"
    SECURITY = "security"
    PROFILE = "profile"
    ADMIN = "admin"


class PortalActivity(BaseModel):
    """One user-visible action recorded against a citizen's account."""

    user_id: str
    user_name: str
    action: str
    type: ActivityType
    metadata: str = ""
    created_at: Optional[datetime] = None


class NotificationType(StrEnum):
    """Kinds of events that alert the back office."""

    REGISTRATION = "registration"
    PROFILE_UPDATE = "profile_update"


class AdminNotification(BaseModel):
    """An unread item on the admin dashboard."""

    type: NotificationType
    message: str
    user_name: Optional[str] = None
    email: Optional[str] = None
    details: dict[str, NotificationValue] = Field(default_factory=dict)
    read: bool = False
    created_at: Optional[datetime] = None
