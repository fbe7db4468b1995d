"""Per-book reading progress."""

import logging
from pathlib import Path

from epubspoon.storage.database import get_connection
from epubspoon.sync.notifier import ChangeNotifier

logger = logging.getLogger(__name__)


class ProgressStore:
    """Persists the current excerpt index per content hash.

    Writes overwrite unconditionally (last write wins) and are published on
    the notifier after they commit. The store accepts any integer; clamping
    to the book's range is the caller's job.

    Args:
        db_path: Path to an initialized SQLite database.
        notifier: Channel to publish changes on.
    """

    def __init__(self, db_path: str | Path, notifier: ChangeNotifier) -> None:
        self._db_path = db_path
        self._notifier = notifier

    def get(self, content_hash: str) -> int:
        """Return the stored index, or 0 if none was saved."""
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT current_index FROM progress WHERE content_hash = ?",
                (content_hash,),
            ).fetchone()
        finally:
            conn.close()
        return int(row["current_index"]) if row is not None else 0

    def set(
        self, content_hash: str, index: int, origin: str | None = None, notify: bool = True
    ) -> None:
        """Persist ``index`` for the hash and notify other observers.

        Args:
            content_hash: The book.
            index: New current excerpt index.
            origin: Identifier of the writing surface; its own subscription
                    is skipped when publishing.
            notify: Publish after the commit. Pass False to publish later.
        """
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                """
                INSERT INTO progress (content_hash, current_index, revision)
                VALUES (?, ?, 1)
                ON CONFLICT(content_hash) DO UPDATE SET
                    current_index = excluded.current_index,
                    revision = progress.revision + 1,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (content_hash, int(index)),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("Progress for %s set to %d by %s", content_hash, index, origin or "unknown")
        if notify:
            self._notifier.publish(content_hash, origin=origin)

    def ensure(self, content_hash: str) -> int:
        """Create a zero progress row if none exists and return the index."""
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                "INSERT OR IGNORE INTO progress (content_hash, current_index) VALUES (?, 0)",
                (content_hash,),
            )
            conn.commit()
        finally:
            conn.close()
        return self.get(content_hash)

    def delete(self, content_hash: str) -> None:
        conn = get_connection(self._db_path)
        try:
            conn.execute("DELETE FROM progress WHERE content_hash = ?", (content_hash,))
            conn.commit()
        finally:
            conn.close()
        self._notifier.publish(content_hash)

    def revisions(self) -> dict[str, int]:
        """Snapshot of every row's revision counter, for change detection."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute("SELECT content_hash, revision FROM progress").fetchall()
        finally:
            conn.close()
        return {row["content_hash"]: int(row["revision"]) for row in rows}
