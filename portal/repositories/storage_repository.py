"""
Storage Repository.

Uploads binary objects to a Supabase Storage bucket and resolves their
public URL.  The only object the client stores is the profile photo.
"""

from __future__ import annotations

from portal.database import DatabaseManager
from portal.logger import StructuredLogger
from portal.repositories.base_repository import BaseRepository


class StorageRepository(BaseRepository):
    """Data access layer for a single public storage bucket.

    Parameters
    ----------
    db:
        Initialised database manager.
    logger:
        Structured JSON logger.
    bucket:
        Name of the Supabase Storage bucket.
    """

    def __init__(
        self, db: DatabaseManager, logger: StructuredLogger, bucket: str,
    ) -> None:
        super().__init__(db, logger)
        self._bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload *data* to *path* (overwriting) and return its public URL."""
        def _query() -> str:
            store = self.supabase.storage.from_(self._bucket)
            store.upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            return store.get_public_url(path)

        url = self._execute(_query, operation_name=f"upload ({self._bucket})")
        self._logger.info("Uploaded object %s/%s", self._bucket, path)
        return url
