"""
Repository Layer Package.

Provides data-access abstractions over Supabase tables and storage.
All backend data operations flow through repositories: services never
query ``db.supabase`` tables directly.

Usage:
    from portal.repositories.profile_repository import ProfileRepository
"""

from portal.repositories.base_repository import BaseRepository
from portal.repositories.activity_repository import ActivityRepository
from portal.repositories.notification_repository import NotificationRepository
from portal.repositories.profile_repository import ProfileRepository
from portal.repositories.storage_repository import StorageRepository

__all__ = [
    "BaseRepository",
    "ActivityRepository",
    "NotificationRepository",
    "ProfileRepository",
    "StorageRepository",
]
