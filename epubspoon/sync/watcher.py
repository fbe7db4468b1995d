"""Background detection of progress writes made through other connections.

Surfaces running in separate processes share only the SQLite file. The
watcher polls ``PRAGMA data_version``, which changes whenever another
connection commits, and publishes the hashes whose progress revision moved.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from epubspoon.errors import SyncUnavailable
from epubspoon.storage.database import get_connection
from epubspoon.sync.notifier import ChangeNotifier

if TYPE_CHECKING:
    from epubspoon.storage.progress_store import ProgressStore

logger = logging.getLogger(__name__)


class StoreWatcher:
    """Polls the database and republishes progress changes on the notifier.

    Delivery is best effort: while the database cannot be read the watcher
    reports itself unavailable and keeps retrying, and surfaces stay stale
    until they re-read on their own.

    Args:
        db_path: Path to the shared SQLite database.
        progress: ProgressStore used to read revision counters.
        notifier: Channel to publish changed hashes on.
        poll_interval: Seconds between polls.
    """

    def __init__(
        self,
        db_path: str | Path,
        progress: ProgressStore,
        notifier: ChangeNotifier,
        poll_interval: float = 0.5,
    ) -> None:
        self._db_path = db_path
        self._progress = progress
        self._notifier = notifier
        self._poll_interval = poll_interval

        self._conn: sqlite3.Connection | None = None
        self._data_version: int | None = None
        self._revisions: dict[str, int] | None = None
        self._available = True
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def available(self) -> bool:
        return self._available

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start polling on a daemon thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="epubspoon-watcher", daemon=True)
        self._thread.start()
        logger.info("Progress watcher started (every %.2fs)", self._poll_interval)

    def stop(self, timeout: float = 2.0) -> None:
        """Stop polling and release the connection."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        else:
            self._close()

    def poll_once(self) -> list[str]:
        """Check for changes once and publish them.

        The first poll only records a baseline.

        Returns:
            Hashes that were published.

        Raises:
            SyncUnavailable: If the database cannot be read.
        """
        try:
            if self._conn is None:
                self._conn = get_connection(self._db_path)
            version = int(self._conn.execute("PRAGMA data_version").fetchone()[0])
            if self._revisions is not None and version == self._data_version:
                return []
            revisions = self._progress.revisions()
        except sqlite3.Error as e:
            self._close()
            self._available = False
            raise SyncUnavailable(f"Cannot read progress from {self._db_path}: {e}") from e

        if not self._available:
            logger.info("Progress watcher reconnected")
        self._available = True

        previous = self._revisions
        self._data_version = version
        self._revisions = revisions
        if previous is None:
            return []

        changed = [h for h, rev in revisions.items() if previous.get(h) != rev]
        changed.extend(h for h in previous if h not in revisions)

        for content_hash in changed:
            self._notifier.publish(content_hash)
        return changed

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                try:
                    self.poll_once()
                except SyncUnavailable as e:
                    logger.warning("Sync unavailable, surfaces may be stale: %s", e)
                self._stop.wait(self._poll_interval)
        finally:
            self._close()

    def _close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error:
                logger.debug("Ignoring error while closing watcher connection", exc_info=True)
            self._conn = None
