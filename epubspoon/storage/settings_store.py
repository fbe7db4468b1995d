"""Key-value settings: the active book pointer and user preferences."""

from pathlib import Path

from epubspoon.storage.database import get_connection

ACTIVE_BOOK_KEY = "active_book"
DETAIL_MODE_KEY = "detail_mode"
INSTRUCTION_KEY = "instruction"


class SettingsStore:
    """Thin wrapper over the ``settings`` table.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    def get(self, key: str) -> str | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return row["value"] if row is not None else None

    def set(self, key: str, value: str) -> None:
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = get_connection(self._db_path)
        try:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    # ── Active book pointer ──────────────────────────────────────────────

    def get_active_book(self) -> str | None:
        return self.get(ACTIVE_BOOK_KEY)

    def set_active_book(self, content_hash: str) -> None:
        self.set(ACTIVE_BOOK_KEY, content_hash)

    def clear_active_book(self) -> None:
        self.delete(ACTIVE_BOOK_KEY)

    # ── Preferences ──────────────────────────────────────────────────────

    def get_detail_mode(self) -> bool:
        return self.get(DETAIL_MODE_KEY) == "1"

    def set_detail_mode(self, detailed: bool) -> None:
        self.set(DETAIL_MODE_KEY, "1" if detailed else "0")

    def get_instruction(self) -> str | None:
        return self.get(INSTRUCTION_KEY)

    def set_instruction(self, text: str) -> None:
        self.set(INSTRUCTION_KEY, text)

    def reset_instruction(self) -> None:
        self.delete(INSTRUCTION_KEY)
