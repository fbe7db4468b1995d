"""Core operations exposed to the UI shells.

A Library is constructed once per process and handed to every surface.
It owns the stores, the change notifier and, optionally, the watcher that
picks up writes from other processes.
"""

import logging
from pathlib import Path

from epubspoon.config import AppConfig
from epubspoon.errors import BookImportError, NoExtractableText
from epubspoon.ingestion.extractor import EpubExtractor
from epubspoon.ingestion.hashing import content_hash
from epubspoon.ingestion.segmenter import Segmenter
from epubspoon.models.book import BookRecord, ImportedBook
from epubspoon.storage.content_store import ContentStore
from epubspoon.storage.database import initialize_database
from epubspoon.storage.progress_store import ProgressStore
from epubspoon.storage.settings_store import SettingsStore
from epubspoon.sync.notifier import ChangeCallback, ChangeNotifier, Subscription
from epubspoon.sync.watcher import StoreWatcher

logger = logging.getLogger(__name__)


class Library:
    """Import, cache and track reading progress for EPUB books.

    Args:
        config: Application configuration.
        notifier: Shared change channel; a new one is created if omitted.
    """

    def __init__(self, config: AppConfig, notifier: ChangeNotifier | None = None) -> None:
        self._config = config
        db_path = config.storage.sqlite_path
        initialize_database(db_path)

        self.notifier = notifier or ChangeNotifier()
        self.content = ContentStore(db_path)
        self.progress = ProgressStore(db_path, self.notifier)
        self.settings = SettingsStore(db_path)

        self._extractor = EpubExtractor(config.extraction)
        self._segmenter = Segmenter(config.segmenting)
        self._watcher: StoreWatcher | None = None
        if config.sync.enabled:
            self._watcher = StoreWatcher(
                db_path,
                self.progress,
                self.notifier,
                poll_interval=config.sync.poll_interval_seconds,
            )

    # ── Lifetime ─────────────────────────────────────────────────────────

    def start_sync(self) -> None:
        """Start watching for progress writes from other processes."""
        if self._watcher is not None:
            self._watcher.start()

    @property
    def sync_available(self) -> bool:
        return self._watcher is not None and self._watcher.available

    def close(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()

    def __enter__(self) -> "Library":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Import ───────────────────────────────────────────────────────────

    def import_book(self, data: bytes) -> ImportedBook:
        """Import EPUB bytes, extracting and segmenting only on a cache miss.

        Nothing is written to the store unless extraction and segmentation
        both succeed. On success the book becomes the active book.

        Args:
            data: Raw bytes of the .epub file.

        Returns:
            The imported book with its starting index.

        Raises:
            UnreadableContainer: If the file is not a readable EPUB.
            NoExtractableText: If the book has no usable text.
        """
        key = content_hash(data)

        cached = self.content.get(key)
        if cached is not None:
            logger.info("Cache hit for '%s' (%s)", cached.title, key)
            return self._activate(key, cached, from_cache=True)

        if self.content.has(key):
            logger.warning("Re-extracting %s over an unreadable cache entry", key)

        record = self.build_record(data)
        self.content.put(key, record)
        return self._activate(key, record, from_cache=False)

    def import_file(self, file_path: str | Path) -> ImportedBook:
        """Import a book from disk.

        Raises:
            FileNotFoundError: If file_path does not exist.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return self.import_book(path.read_bytes())

    def build_record(self, data: bytes) -> BookRecord:
        """Run extraction and segmentation without touching the store."""
        extracted = self._extractor.extract(data)
        segments = self._segmenter.segment(extracted.chapter_texts)
        if not segments:
            raise NoExtractableText(f"No segments produced for '{extracted.title}'")

        return BookRecord(
            title=extracted.title,
            chapters=extracted.chapter_texts,
            segments=segments,
        )

    @staticmethod
    def user_message(error: BookImportError) -> str:
        """The message shown to the user for a failed import."""
        return error.user_message

    # ── Cached books ─────────────────────────────────────────────────────

    def open_cached(self, key: str) -> BookRecord | None:
        return self.content.get(key)

    def reopen(self, key: str) -> ImportedBook | None:
        """Reopen a cached book and make it active.

        Returns:
            The book, or None if it is not cached or the entry is unreadable.
            The caller must then ask for the file again.
        """
        record = self.content.get(key)
        if record is None:
            return None
        return self._activate(key, record, from_cache=True)

    def active_book(self) -> str | None:
        return self.settings.get_active_book()

    def restore_last_book(self) -> ImportedBook | None:
        """Load the active book at cold start, if it is still cached."""
        key = self.settings.get_active_book()
        if key is None:
            return None

        record = self.content.get(key)
        if record is None:
            logger.warning("Active book %s is no longer cached", key)
            return None

        return ImportedBook(
            content_hash=key,
            record=record,
            current_index=self.progress.get(key),
            from_cache=True,
        )

    def clear_book(self, key: str) -> None:
        """Remove a book and its progress; clear the pointer if it is active."""
        self.content.delete(key)
        self.progress.delete(key)
        if self.settings.get_active_book() == key:
            self.settings.clear_active_book()
        logger.info("Cleared book %s", key)

    # ── Progress ─────────────────────────────────────────────────────────

    def get_progress(self, key: str) -> int:
        return self.progress.get(key)

    def set_progress(
        self, key: str, index: int, origin: str | None = None, notify: bool = True
    ) -> None:
        """Persist progress. Callers clamp to the book's range first.

        Args:
            key: Content hash of the book.
            index: New current excerpt index.
            origin: Identifier of the writing surface.
            notify: Publish the change now. A caller passing False must call
                    ``publish_progress`` itself once it has released its lock.

        Raises:
            ValueError: If index is negative.
        """
        if index < 0:
            raise ValueError(f"Progress index must be >= 0, got {index}")
        self.progress.set(key, index, origin=origin, notify=notify)

    def publish_progress(self, key: str, origin: str | None = None) -> None:
        self.notifier.publish(key, origin=origin)

    def subscribe(
        self, key: str, callback: ChangeCallback, origin: str | None = None
    ) -> Subscription:
        return self.notifier.subscribe(key, callback, origin=origin)

    # ── Preferences ──────────────────────────────────────────────────────

    def get_detail_mode(self) -> bool:
        return self.settings.get_detail_mode()

    def set_detail_mode(self, detailed: bool) -> None:
        self.settings.set_detail_mode(detailed)

    def get_instruction(self) -> str:
        return self.settings.get_instruction() or self._config.prompt.instruction

    def set_instruction(self, text: str) -> None:
        self.settings.set_instruction(text)

    def reset_instruction(self) -> None:
        self.settings.reset_instruction()

    def _activate(self, key: str, record: BookRecord, from_cache: bool) -> ImportedBook:
        index = self.progress.ensure(key)
        self.settings.set_active_book(key)
        return ImportedBook(
            content_hash=key,
            record=record,
            current_index=index,
            from_cache=from_cache,
        )
