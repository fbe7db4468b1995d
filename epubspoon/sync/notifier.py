"""Publish/subscribe channel for progress changes, keyed by content hash."""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class Subscription:
    """A registered interest in changes to one content hash.

    Release it with ``unsubscribe()`` (or by leaving a ``with`` block) when
    the owning surface is torn down; releasing twice is harmless.
    """

    def __init__(
        self,
        notifier: "ChangeNotifier",
        content_hash: str,
        callback: ChangeCallback,
        origin: str | None,
    ) -> None:
        self.content_hash = content_hash
        self.callback = callback
        self.origin = origin
        self._notifier = notifier
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._active = False
            self._notifier._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class ChangeNotifier:
    """Delivers "something changed for this hash" to registered observers.

    Observers receive only the hash and must re-read the store. A publish
    carrying an ``origin`` skips subscribers registered with the same
    origin, so a writer is not told about its own writes. Delivery is
    synchronous on the publishing thread; a failing callback is logged
    and does not stop delivery to the rest.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscription]] = {}

    def subscribe(
        self,
        content_hash: str,
        callback: ChangeCallback,
        origin: str | None = None,
    ) -> Subscription:
        """Register a callback for changes to ``content_hash``.

        Args:
            content_hash: The book to observe.
            callback: Called with the changed hash.
            origin: Identifier of the subscribing writer, if any.

        Returns:
            A Subscription that must be released on teardown.
        """
        subscription = Subscription(self, content_hash, callback, origin)
        with self._lock:
            self._subscribers.setdefault(content_hash, []).append(subscription)
        return subscription

    def publish(self, content_hash: str, origin: str | None = None) -> int:
        """Notify observers of ``content_hash``.

        Args:
            content_hash: The hash whose progress changed.
            origin: The writer that caused the change, if known.

        Returns:
            Number of callbacks invoked.
        """
        with self._lock:
            targets = [
                s
                for s in self._subscribers.get(content_hash, [])
                if origin is None or s.origin != origin
            ]

        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.callback(content_hash)
                delivered += 1
            except Exception:
                logger.exception("Change callback failed for %s", content_hash)
        return delivered

    def subscriber_count(self, content_hash: str) -> int:
        with self._lock:
            return len(self._subscribers.get(content_hash, []))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.content_hash, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.content_hash, None)
