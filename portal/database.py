"""
Backend Connection Layer.

The portal is built directly on a hosted Supabase project that supplies
three managed services:

- **Auth**: email/password credential store issuing sessions.
- **PostgREST tables**: ``profiles`` (one row per auth user),
  ``portal_activities`` and ``admin_notifications``.
- **Storage**: a public bucket for profile photos.

This module only manages the client *connection*; all query logic lives
in the repositories.

Usage (dependency injection at app startup)::

    from portal.database import DatabaseManager
    from portal.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

from typing import Optional

from supabase import create_client, Client as SupabaseClient

from portal.logger import StructuredLogger


class DatabaseManager:
    """Owns the Supabase client for the lifetime of the application.

    When ``supabase_url`` or ``supabase_key`` is empty the client is
    **not** created.  Every consumer wraps backend calls in
    ``try/except``, so the ``RuntimeError`` raised by the ``supabase``
    property surfaces as a network failure in the auth taxonomy.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The Supabase anonymous key.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    client:
        Pre-built client, used instead of ``create_client`` when given.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase: Optional[SupabaseClient] = client

        if self._supabase is not None:
            return

        if supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Backend unavailable.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Backend unavailable.",
                    exc,
                    exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured; backend unavailable."
            )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the Supabase client was not initialised.
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Check SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        return self._supabase
