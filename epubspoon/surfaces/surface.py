"""A reading surface: local cache of the active book plus progress sync.

Every control point (main view, overlay button, browser panel) wraps one
Surface. Navigation is optimistic: the local index changes first, then the
write goes to the store. Writes from other surfaces arrive as
notifications; the surface re-reads the store and adopts the stored index
when it differs and is in range. Concurrent writers race, and the last
write wins.
"""

import logging
import threading
from collections.abc import Callable
from typing import Literal
from uuid import uuid4

from epubspoon.errors import BookImportError
from epubspoon.library import Library
from epubspoon.models.book import ImportedBook
from epubspoon.models.state import (
    ErrorState,
    IdleState,
    LoadingState,
    ReadyState,
    SurfaceState,
)
from epubspoon.surfaces.excerpts import (
    context_text,
    find_excerpt,
    label_excerpt,
    progress_label,
)
from epubspoon.sync.notifier import Subscription

logger = logging.getLogger(__name__)

SurfaceKind = Literal["main", "overlay", "panel"]
StateListener = Callable[[SurfaceState], None]


class Surface:
    """Holds one surface's view of the active book and keeps it in sync.

    Args:
        library: The process-wide Library.
        kind: Which control point this surface backs.
        origin: Identifier used to skip notifications about this surface's
                own writes. Generated if omitted.
    """

    def __init__(
        self,
        library: Library,
        kind: SurfaceKind = "main",
        origin: str | None = None,
    ) -> None:
        self.kind = kind
        self.origin = origin or f"{kind}-{uuid4().hex[:8]}"
        self._library = library
        self._lock = threading.RLock()
        self._state: SurfaceState = IdleState()
        self._subscription: Subscription | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SurfaceState:
        return self._state

    def on_state_change(self, listener: StateListener) -> None:
        """Register a render hook called after every state change."""
        self._listeners.append(listener)

    # ── Loading ──────────────────────────────────────────────────────────

    def activate(self) -> SurfaceState:
        """Load the active book from the store, or go idle if there is none."""
        self._set_state(LoadingState())
        imported = self._library.restore_last_book()
        if imported is None:
            self._release()
            self._set_state(IdleState())
        else:
            self._enter_ready(imported)
        return self._state

    def import_book(self, data: bytes) -> SurfaceState:
        """Import EPUB bytes and show the result.

        Failures leave the surface in the error state with a user-facing
        message; a later import starts over from loading.
        """
        self._set_state(LoadingState())
        try:
            imported = self._library.import_book(data)
        except BookImportError as e:
            logger.warning("Import failed on %s: %s", self.origin, e)
            self._set_state(ErrorState(message=self._library.user_message(e)))
            return self._state

        self._enter_ready(imported)
        return self._state

    def open(self, content_hash: str) -> SurfaceState:
        """Reopen a cached book by hash."""
        self._set_state(LoadingState())
        imported = self._library.reopen(content_hash)
        if imported is None:
            self._set_state(ErrorState(message="This book is no longer cached. Please import it again."))
        else:
            self._enter_ready(imported)
        return self._state

    def resume(self) -> SurfaceState:
        """Force a re-sync with the store, e.g. when brought to the foreground.

        Recovers from dropped notifications and from another surface having
        switched or cleared the active book. An error stays on screen until
        the next import.
        """
        state = self._state
        if isinstance(state, ErrorState):
            return state

        active = self._library.active_book()
        if not isinstance(state, ReadyState) or state.content_hash != active:
            return self.activate()

        self._on_progress_changed(state.content_hash)
        return self._state

    # ── Navigation ───────────────────────────────────────────────────────

    def advance(self) -> str | None:
        """Return the current excerpt, labelled, and move to the next one.

        At the last excerpt the text is still returned but the position
        stays put; check ``is_last`` to tell the user.

        Returns:
            The labelled excerpt, or None if no book is loaded.
        """
        with self._lock:
            state = self._state
            if not isinstance(state, ReadyState) or not state.segments:
                return None
            index = state.clamp(state.current_index)
            text = label_excerpt(index, state.segments[index])
            target = index + 1 if index < state.total - 1 else None

        if target is not None:
            self.jump(target)
        return text

    def step(self, delta: int) -> int | None:
        state = self._state
        if not isinstance(state, ReadyState):
            return None
        return self.jump(state.current_index + delta)

    def previous(self) -> int | None:
        return self.step(-1)

    def next(self) -> int | None:
        return self.step(1)

    def jump(self, index: int) -> int | None:
        """Move to ``index`` (clamped), persist it, and update locally.

        The local update and the store write happen under the lock, so a
        notification handled meanwhile cannot read the previous index back.
        Other surfaces are notified after the lock is released.

        Returns:
            The index actually moved to, or None if no book is loaded.
        """
        with self._lock:
            state = self._state
            if not isinstance(state, ReadyState) or not state.segments:
                return None
            target = state.clamp(index)
            if target == state.current_index:
                return target
            updated = state.model_copy(update={"current_index": target})
            self._state = updated
            self._library.set_progress(updated.content_hash, target, origin=self.origin, notify=False)

        self._library.publish_progress(updated.content_hash, origin=self.origin)
        self._emit(updated)
        return target

    def search(self, query: str) -> int | None:
        """Jump to an excerpt number or the next excerpt containing query."""
        state = self._state
        if not isinstance(state, ReadyState):
            return None
        target = find_excerpt(state.segments, query, state.current_index)
        if target is None:
            return None
        return self.jump(target)

    # ── Views ────────────────────────────────────────────────────────────

    @property
    def is_last(self) -> bool:
        state = self._state
        return not isinstance(state, ReadyState) or state.is_last

    @property
    def progress_label(self) -> str:
        state = self._state
        if not isinstance(state, ReadyState):
            return ""
        return progress_label(state.current_index, state.total)

    def current_text(self) -> str | None:
        state = self._state
        if not isinstance(state, ReadyState) or not state.segments:
            return None
        return state.segments[state.clamp(state.current_index)]

    def context_text(self) -> str | None:
        """Everything read so far, for re-priming a fresh chat."""
        state = self._state
        if not isinstance(state, ReadyState) or not state.segments:
            return None
        return context_text(state.segments, state.current_index)

    def chapter_text(self, chapter_index: int) -> str | None:
        """Full text of one chapter, if this record knows its chapters."""
        state = self._state
        if not isinstance(state, ReadyState) or state.chapters is None:
            return None
        if not 0 <= chapter_index < len(state.chapters):
            return None
        return state.chapters[chapter_index]

    # ── Teardown ─────────────────────────────────────────────────────────

    def clear(self) -> None:
        """Remove the active book from the store and go idle."""
        state = self._state
        self._release()
        if isinstance(state, ReadyState):
            self._library.clear_book(state.content_hash)
        self._set_state(IdleState())

    def close(self) -> None:
        """Release the subscription. Call when the surface is torn down."""
        self._release()

    # ── Internals ────────────────────────────────────────────────────────

    def _enter_ready(self, imported: ImportedBook) -> None:
        record = imported.record
        ready = ReadyState(
            content_hash=imported.content_hash,
            title=record.title,
            segments=record.segments,
            chapters=record.chapters,
            current_index=0,
        )
        ready = ready.model_copy(update={"current_index": ready.clamp(imported.current_index)})

        if self._subscription is None or self._subscription.content_hash != imported.content_hash:
            self._release()
            self._subscription = self._library.subscribe(
                imported.content_hash, self._on_progress_changed, origin=self.origin
            )

        logger.info(
            "%s ready: '%s' at %s",
            self.origin,
            record.title,
            progress_label(ready.current_index, ready.total),
        )
        self._set_state(ready)

    def _on_progress_changed(self, content_hash: str) -> None:
        """Re-read the stored index and adopt it if it differs and is in range."""
        with self._lock:
            stored = self._library.get_progress(content_hash)
            state = self._state
            if not isinstance(state, ReadyState) or state.content_hash != content_hash:
                return
            if stored == state.current_index or not state.in_range(stored):
                return
            updated = state.model_copy(update={"current_index": stored})
            self._state = updated

        logger.debug("%s adopted index %d for %s", self.origin, stored, content_hash)
        self._emit(updated)

    def _set_state(self, state: SurfaceState) -> None:
        with self._lock:
            self._state = state
        self._emit(state)

    def _emit(self, state: SurfaceState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed on %s", self.origin)

    def _release(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
