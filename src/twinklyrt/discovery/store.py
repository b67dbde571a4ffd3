"""File-backed implementation of the host SettingsStore protocol."""

import logging
import threading
from pathlib import Path

from pydantic import BaseModel, Field

from twinklyrt.model_manager import PydanticPersistence

logger = logging.getLogger(__name__)


class StoredSettings(BaseModel):
    """On-disk layout: namespace -> key -> string value."""

    namespaces: dict[str, dict[str, str]] = Field(default_factory=dict)


class JsonSettingsStore:
    """
    Durable (namespace, key) -> string storage in one JSON file.

    Every write is persisted immediately with an atomic replace, and the
    previous file is copied to ``<name>.bak`` first. A corrupted file is
    not read: the store starts empty and the file stays as it is until the
    first write replaces it. Its content then survives in the backup until
    the write after that.
    """

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        self._data = PydanticPersistence.ensure_valid_or_create(path, StoredSettings, auto_save=False)

    def get_setting(self, namespace: str, key: str) -> str | None:
        with self._lock:
            return self._data.namespaces.get(namespace, {}).get(key)

    def save_setting(self, namespace: str, key: str, value: str) -> None:
        with self._lock:
            self._data.namespaces.setdefault(namespace, {})[key] = value
            self._flush()

    def remove_setting(self, namespace: str, key: str) -> None:
        with self._lock:
            values = self._data.namespaces.get(namespace)
            if not values or key not in values:
                return
            del values[key]
            if not values:
                del self._data.namespaces[namespace]
            self._flush()

    def _flush(self) -> None:
        PydanticPersistence.save_json(self._data, self.path)
        logger.debug(f"Settings written to {self.path}")
