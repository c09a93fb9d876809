"""Key-value stores used to persist timer config and state."""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional


class StoreError(Exception):
    """Raised when the backing file cannot be written."""


class InMemoryStore:
    """Process-local store; values are deep-copied so callers cannot mutate them."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._values: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)


class JsonFileStore:
    """Single JSON document holding all keys, replaced atomically on every write."""

    def __init__(self, path: str | Path, logger: Optional[logging.Logger] = None):
        self._path = Path(path)
        self._logger = logger or logging.getLogger("store")
        self._lock = threading.Lock()
        self._cache: Optional[dict[str, Any]] = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._load_locked().get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            values = dict(self._load_locked())
            values[key] = copy.deepcopy(value)
            self._write_locked(values)
            self._cache = values

    def _load_locked(self) -> dict[str, Any]:
        if self._cache is not None:
            return self._cache

        if not self._path.exists():
            self._cache = {}
            return self._cache

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as error:
            self._logger.warning("Ignoring unreadable store file %s: %s", self._path, error)
            raw = {}

        if not isinstance(raw, dict):
            self._logger.warning("Ignoring store file %s: root is not an object", self._path)
            raw = {}

        self._cache = raw
        return self._cache

    def _write_locked(self, values: dict[str, Any]) -> None:
        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                delete=False,
                dir=str(self._path.parent),
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                encoding="utf-8",
            ) as tmp:
                tmp_name = tmp.name
                json.dump(values, tmp, indent=2, sort_keys=True)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except (OSError, TypeError, ValueError) as error:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Failed to write store file {self._path}: {error}") from error
        self._logger.debug("Store written: %s", self._path)
