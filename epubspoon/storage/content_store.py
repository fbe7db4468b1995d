"""Content-addressed cache of segmented books."""

import logging
from pathlib import Path

from pydantic import ValidationError

from epubspoon.errors import CacheCorrupt
from epubspoon.models.book import BookRecord
from epubspoon.storage.database import get_connection

logger = logging.getLogger(__name__)


def decode_record(raw: str) -> BookRecord:
    """Deserialize a stored book record.

    Raises:
        CacheCorrupt: If the stored JSON is malformed or fails validation.
    """
    try:
        return BookRecord.model_validate_json(raw)
    except ValidationError as e:
        raise CacheCorrupt(str(e)) from e


class ContentStore:
    """Maps a content hash to its BookRecord.

    Records are written whole in a single statement and never merged.
    There is no eviction; ``delete`` is the only removal path.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    def get(self, content_hash: str) -> BookRecord | None:
        """Return the cached record, or None on a miss.

        A row that fails to deserialize is treated as a miss.
        """
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT record_json FROM books WHERE content_hash = ?",
                (content_hash,),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None

        try:
            return decode_record(row["record_json"])
        except CacheCorrupt:
            logger.warning("Cached record for %s is corrupt, treating as miss", content_hash)
            return None

    def put(self, content_hash: str, record: BookRecord) -> None:
        """Store a record, overwriting any existing one for the hash."""
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                "INSERT OR REPLACE INTO books (content_hash, record_json) VALUES (?, ?)",
                (content_hash, record.model_dump_json()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Cached '%s' (%d segments) as %s", record.title, len(record.segments), content_hash)

    def has(self, content_hash: str) -> bool:
        """Check whether a row exists for the hash, readable or not."""
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT 1 FROM books WHERE content_hash = ?", (content_hash,)
            ).fetchone()
        finally:
            conn.close()
        return row is not None

    def delete(self, content_hash: str) -> None:
        conn = get_connection(self._db_path)
        try:
            conn.execute("DELETE FROM books WHERE content_hash = ?", (content_hash,))
            conn.commit()
        finally:
            conn.close()
