"""Host adapters implementing the phase controller's collaborator contracts."""

from .notifier import FanOutNotifier, LoggingNotifier
from .scheduler import ThreadedWakeupScheduler
from .store import InMemoryStore, JsonFileStore, StoreError

__all__ = [
    "FanOutNotifier",
    "InMemoryStore",
    "JsonFileStore",
    "LoggingNotifier",
    "StoreError",
    "ThreadedWakeupScheduler",
]
