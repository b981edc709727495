"""Key-value store for client-side state.

Holds drafts, clone/backup/export histories, export templates, user
preferences and counters. Values are JSON-compatible. The file backend
rewrites the whole document on every change.
"""
import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Callable, Optional

from brewlog.config import get_settings

logger = logging.getLogger(__name__)

# Known keys
DRAFTS = "drafts"
CLONE_HISTORY = "clone_history"
BACKUP_HISTORY = "backup_history"
PRE_RESTORE_BACKUP = "pre_restore_backup"
EXPORT_TEMPLATES = "export_templates"
EXPORT_HISTORY = "export_history"
USER_PREFERENCES = "user_preferences"
COUNTERS = "counters"


class KeyValueStore(ABC):
    """Abstract key-value store.

    The store is shared by every request thread. Read-modify-write helpers
    hold the store lock for the whole sequence.
    """

    def __init__(self):
        self._lock = RLock()

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Replace the value at key with fn(current) atomically and return it."""
        with self._lock:
            value = fn(self.get(key, default))
            self.set(key, value)
            return value

    def push_bounded(self, key: str, item: Any, limit: int) -> list:
        """Prepend item to the list at key, keeping the `limit` most recent."""
        return self.update(key, lambda items: ([item] + list(items or []))[:limit])

    def increment(self, counter: str, amount: int = 1) -> int:
        def bump(counters):
            counters = counters or {}
            counters[counter] = counters.get(counter, 0) + amount
            return counters

        return self.update(COUNTERS, bump)[counter]


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[dict] = None):
        super().__init__()
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStore(InMemoryStore):
    """In-memory store persisted to a single JSON file."""

    def __init__(self, path: str):
        self.path = path
        initial = {}
        if os.path.exists(path):
            with open(path, encoding="utf-8") as f:
                initial = json.load(f)
            logger.info(f"Loaded state from {path} ({len(initial)} keys)")
        super().__init__(initial)

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, default=str)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            super().set(key, value)
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            super().delete(key)
            self._flush()


_store: Optional[KeyValueStore] = None
_store_lock = RLock()


def get_store() -> KeyValueStore:
    """Get or create the key-value store singleton."""
    global _store
    with _store_lock:
        if _store is None:
            state_file = get_settings().STATE_FILE
            _store = JsonFileStore(state_file) if state_file else InMemoryStore()
        return _store
