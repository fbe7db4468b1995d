"""Persistent storage: books, progress and settings in SQLite."""

from epubspoon.storage.content_store import ContentStore
from epubspoon.storage.database import get_connection, initialize_database
from epubspoon.storage.progress_store import ProgressStore
from epubspoon.storage.settings_store import SettingsStore

__all__ = [
    "ContentStore",
    "ProgressStore",
    "SettingsStore",
    "get_connection",
    "initialize_database",
]
