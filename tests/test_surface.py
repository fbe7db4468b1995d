"""Tests for surface state and cross-surface progress reconciliation."""

import threading
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from epubspoon.library import Library
from epubspoon.models.state import ErrorState, IdleState, ReadyState
from epubspoon.storage.progress_store import ProgressStore
from epubspoon.surfaces.surface import Surface
from epubspoon.sync.notifier import ChangeNotifier
from epub_builder import build_epub, corrupt_member, prose


def _numbered_chapter(n: int) -> str:
    return f"<p>Chapter {n} opens here. {prose(20)}</p>"


@pytest.fixture
def book_bytes() -> bytes:
    # 24-word chapters at target 300: one excerpt per chapter
    return build_epub([_numbered_chapter(n) for n in range(1, 11)], title="Ten Parts")


@pytest.fixture
def main(library: Library) -> Iterator[Surface]:
    surface = Surface(library, kind="main", origin="main")
    yield surface
    surface.close()


@pytest.fixture
def overlay(library: Library) -> Iterator[Surface]:
    surface = Surface(library, kind="overlay", origin="overlay")
    yield surface
    surface.close()


def _ready(surface: Surface) -> ReadyState:
    state = surface.state
    assert isinstance(state, ReadyState)
    return state


class TestSurfaceStates:
    def test_starts_idle(self, main: Surface) -> None:
        assert isinstance(main.state, IdleState)
        assert main.advance() is None
        assert main.progress_label == ""

    def test_activate_without_book_stays_idle(self, main: Surface) -> None:
        assert isinstance(main.activate(), IdleState)

    def test_import_reaches_ready(self, main: Surface, book_bytes: bytes) -> None:
        state = main.import_book(book_bytes)
        assert isinstance(state, ReadyState)
        assert state.title == "Ten Parts"
        assert state.total == 10
        assert main.progress_label == "1/10"

    def test_failed_import_reaches_error(self, main: Surface) -> None:
        state = main.import_book(b"junk")
        assert isinstance(state, ErrorState)
        assert "epub" in state.message.lower()

    def test_corrupt_archive_member_reaches_error(self, main: Surface, book_bytes: bytes) -> None:
        for member in ("META-INF/container.xml", "OEBPS/text/chapter1.xhtml"):
            state = main.import_book(corrupt_member(book_bytes, member))
            assert isinstance(state, ErrorState)
            assert "epub" in state.message.lower()

    def test_resume_keeps_error(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        main.import_book(b"not a zip")

        state = main.resume()
        assert isinstance(state, ErrorState)
        assert isinstance(main.state, ErrorState)

    def test_error_left_by_fresh_import(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(b"junk")
        assert isinstance(main.import_book(book_bytes), ReadyState)

    def test_listener_sees_loading_then_ready(self, main: Surface, book_bytes: bytes) -> None:
        kinds: list[str] = []
        main.on_state_change(lambda s: kinds.append(s.kind))
        main.import_book(book_bytes)
        assert kinds == ["loading", "ready"]

    def test_activate_restores_active_book(self, library: Library, book_bytes: bytes) -> None:
        imported = library.import_book(book_bytes)
        library.set_progress(imported.content_hash, 4)

        surface = Surface(library, kind="panel")
        state = surface.activate()
        assert isinstance(state, ReadyState)
        assert state.current_index == 4
        surface.close()

    def test_stored_index_clamped_on_load(self, library: Library, book_bytes: bytes) -> None:
        imported = library.import_book(book_bytes)
        library.set_progress(imported.content_hash, 999)

        surface = Surface(library)
        surface.activate()
        assert _ready(surface).current_index == 9
        surface.close()

    def test_open_uncached_is_error(self, main: Surface) -> None:
        assert isinstance(main.open("0" * 32), ErrorState)


class TestNavigation:
    def test_advance_returns_labelled_text_and_moves(
        self, main: Surface, library: Library, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        text = main.advance()
        assert text is not None
        assert text.startswith("[1]\nChapter 1 opens here.")
        state = _ready(main)
        assert state.current_index == 1
        assert library.get_progress(state.content_hash) == 1

    def test_advance_at_last_stays(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        main.jump(9)
        assert main.is_last
        text = main.advance()
        assert text is not None
        assert text.startswith("[10]\n")
        assert _ready(main).current_index == 9

    def test_jump_clamps(self, main: Surface, library: Library, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        assert main.jump(50) == 9
        assert main.jump(-5) == 0
        assert library.get_progress(_ready(main).content_hash) == 0

    def test_previous_and_next(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        assert main.previous() == 0
        assert main.next() == 1
        assert main.next() == 2
        assert main.previous() == 1

    def test_search_by_number(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        assert main.search("5") == 4
        assert main.search("500") == 9

    def test_search_by_keyword_wraps(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        main.jump(7)
        assert main.search("chapter 3 OPENS") == 2

    def test_search_not_found(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        assert main.search("submarine") is None
        assert _ready(main).current_index == 0

    def test_context_text(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        main.jump(1)
        context = main.context_text()
        assert context is not None
        assert context.startswith("[1]\nChapter 1")
        assert "[2]\nChapter 2" in context
        assert "[3]" not in context
        assert "1-2 of 10" in context

    def test_chapter_text(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        assert main.chapter_text(0).startswith("Chapter 1 opens here.")
        assert main.chapter_text(10) is None

    def test_clear_returns_to_idle(self, main: Surface, library: Library, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        key = _ready(main).content_hash
        main.clear()
        assert isinstance(main.state, IdleState)
        assert library.open_cached(key) is None
        assert library.active_book() is None


class TestReconciliation:
    def test_other_surface_write_is_adopted(
        self, main: Surface, overlay: Surface, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        overlay.activate()

        overlay.advance()
        assert _ready(main).current_index == 1

    def test_own_write_not_echoed(self, main: Surface, book_bytes: bytes) -> None:
        main.import_book(book_bytes)
        changes: list[int] = []
        main.on_state_change(lambda s: changes.append(s.current_index))
        main.jump(3)
        assert changes == [3]

    def test_concurrent_writes_last_write_wins(
        self, main: Surface, overlay: Surface, library: Library, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        overlay.activate()
        key = _ready(main).content_hash
        overlay.jump(3)
        assert _ready(main).current_index == 3

        # Overlay stops listening, so main's write leaves it stale at 3
        overlay.close()
        main.jump(5)
        assert _ready(overlay).current_index == 3

        overlay.jump(4)

        assert library.get_progress(key) == 4
        assert _ready(main).current_index == 4
        assert _ready(overlay).current_index == 4

    def test_notification_during_own_write_keeps_new_index(
        self, main: Surface, library: Library, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        write_progress = library.set_progress
        handlers: list[threading.Thread] = []

        def write_with_notification_in_flight(*args: object, **kwargs: object) -> None:
            # Another writer's notification arrives before this write commits
            handler = threading.Thread(
                target=main._on_progress_changed, args=(_ready(main).content_hash,)
            )
            handler.start()
            handler.join(0.1)
            handlers.append(handler)
            write_progress(*args, **kwargs)

        with patch.object(library, "set_progress", side_effect=write_with_notification_in_flight):
            main.jump(3)
        for handler in handlers:
            handler.join(2.0)

        assert _ready(main).current_index == 3
        assert library.get_progress(_ready(main).content_hash) == 3

    def test_out_of_range_notification_ignored(
        self, main: Surface, library: Library, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        key = _ready(main).content_hash
        library.set_progress(key, 500, origin="elsewhere")
        assert _ready(main).current_index == 0

    def test_resume_recovers_dropped_notification(
        self, main: Surface, db_path: Path, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        key = _ready(main).content_hash
        # A writer with its own notifier stands in for another process
        ProgressStore(db_path, ChangeNotifier()).set(key, 6)
        assert _ready(main).current_index == 0

        main.resume()
        assert _ready(main).current_index == 6

    def test_resume_follows_active_book_switch(
        self, main: Surface, overlay: Surface, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        overlay.import_book(build_epub(["<p>A different book entirely.</p>"], title="Other"))

        main.resume()
        assert _ready(main).title == "Other"

    def test_close_releases_subscription(
        self, main: Surface, library: Library, book_bytes: bytes
    ) -> None:
        main.import_book(book_bytes)
        key = _ready(main).content_hash
        assert library.notifier.subscriber_count(key) == 1
        main.close()
        assert library.notifier.subscriber_count(key) == 0
