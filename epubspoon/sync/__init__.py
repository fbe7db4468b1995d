"""Progress change propagation between surfaces."""

from epubspoon.sync.notifier import ChangeCallback, ChangeNotifier, Subscription
from epubspoon.sync.watcher import StoreWatcher

__all__ = ["ChangeCallback", "ChangeNotifier", "StoreWatcher", "Subscription"]
