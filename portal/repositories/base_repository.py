"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase)
- Logger reference
- Convenience property for the Supabase client
- A single wrapper that logs backend failures before re-raising them
"""

from __future__ import annotations

from typing import Callable, TypeVar

from supabase import Client as SupabaseClient

from portal.database import DatabaseManager
from portal.logger import StructuredLogger

T = TypeVar("T")


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for cloud operations."""
        return self._db.supabase

    def _execute(
        self,
        operation: Callable[[], T],
        *,
        operation_name: str,
    ) -> T:
        """Run a backend operation, logging and re-raising any failure.

        Repositories do not translate errors: services classify them
        into the auth taxonomy or a ``ServiceResult`` at their boundary.

        Parameters
        ----------
        operation:
            Zero-argument callable performing the Supabase query.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"get_by_id (profiles)"``.
        """
        try:
            return operation()
        except Exception as exc:
            self._logger.warning(
                "Backend operation failed for %s: %s", operation_name, exc
            )
            raise
