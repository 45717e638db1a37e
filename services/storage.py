"""
Key-value persistence for queue and directory state.

The engine and the admin directory serialize their own state to JSON
strings and hand them to a store under a named slot. The store only knows
about slots and blobs.

Slots:
    printSmartQueue                 - job collection
    printSmartRates                 - rate table
    printSmartNotificationSettings  - notification preferences
    printSmartAdminUsers            - operator accounts

Thread Safety:
    - Both stores guard their data with a threading.Lock
    - JsonFileStore writes the whole document to a temp file and replaces
      the target, so a crash mid-write never leaves a truncated file

Usage:
    store = JsonFileStore(Path("data/print_queue.json"))
    store.set(QUEUE_KEY, json.dumps([...]))
    blob = store.get(QUEUE_KEY)   # None if the slot was never written
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from core.exceptions import PersistenceError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

QUEUE_KEY = "printSmartQueue"
RATES_KEY = "printSmartRates"
NOTIFICATION_SETTINGS_KEY = "printSmartNotificationSettings"
ADMIN_USERS_KEY = "printSmartAdminUsers"

MEMORY_STORE_PATH = ":memory:"


class KeyValueStore(ABC):
    """Named slots holding serialized blobs."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under `key`, or None."""

    @abstractmethod
    def set(self, key: str, blob: str) -> None:
        """
        Store `blob` under `key`.

        Raises:
            PersistenceError: If the blob could not be written
        """


class MemoryStore(KeyValueStore):
    """Process-local store, used by tests and ':memory:' deployments."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._slots: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._slots.get(key)

    def set(self, key: str, blob: str) -> None:
        with self._lock:
            self._slots[key] = blob


class JsonFileStore(KeyValueStore):
    """
    All slots in a single JSON object on disk.

    The file is read once at construction. An unreadable or corrupt file is
    logged and treated as empty; it is only overwritten by the next set().
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._slots: Dict[str, str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._slots.get(key)

    def set(self, key: str, blob: str) -> None:
        with self._lock:
            updated = dict(self._slots)
            updated[key] = blob
            self._write(updated)
            self._slots = updated

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            logger.info(f"No data file at {self._path}, starting empty")
            return {}

        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read data file {self._path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Data file {self._path} does not hold an object, ignoring it")
            return {}

        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, slots: Dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", dir=str(self._path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(slots, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(", ".join(sorted(slots)), str(e)) from e


def create_store(location: str) -> KeyValueStore:
    """Store for a DATA_FILE setting (':memory:' or a file path)."""
    if not location or location == MEMORY_STORE_PATH:
        return MemoryStore()
    return JsonFileStore(Path(location))
