"""Persistent cache of confirmed devices.

Stored through the host SettingsStore under namespace "ipCache", key
"cache", as a JSON list of [id, entry] pairs so that insertion order
survives a round trip:

```json
[["98:cd:ac:00:11:22", {"id": "98:cd:ac:00:11:22", "name": "Twinkly_A1B2C3", "ip": "192.168.1.40", "port": 5555}]]
```
"""

import logging
import threading

from pydantic import TypeAdapter, ValidationError

from twinklyrt.models import CacheEntry
from twinklyrt.protocols import SettingsStore

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "ipCache"
CACHE_KEY = "cache"

_ENTRIES = TypeAdapter(list[tuple[str, CacheEntry]])


class DeviceCache:
    """Ordered id -> CacheEntry map, persisted on every change."""

    def __init__(self, store: SettingsStore, namespace: str = CACHE_NAMESPACE, key: str = CACHE_KEY):
        self._store = store
        self._namespace = namespace
        self._key = key
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self.load()

    def load(self) -> int:
        """(Re)load entries from the store. Malformed data leaves the cache empty."""
        raw = self._store.get_setting(self._namespace, self._key)
        entries: dict[str, CacheEntry] = {}
        if raw:
            try:
                entries = dict(_ENTRIES.validate_json(raw))
            except ValidationError as e:
                logger.warning(f"Ignoring malformed device cache: {e.error_count()} error(s)")

        with self._lock:
            self._entries = entries
        logger.debug(f"Device cache holds {len(entries)} entries")
        return len(entries)

    def add(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry
            self._persist()

    def remove(self, key: str) -> bool:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._persist()
        return True

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def entries(self) -> list[tuple[str, CacheEntry]]:
        with self._lock:
            return list(self._entries.items())

    def purge(self) -> None:
        """Forget every entry and delete the stored setting."""
        with self._lock:
            self._entries.clear()
            self._store.remove_setting(self._namespace, self._key)
        logger.info("Device cache purged")

    def _persist(self) -> None:
        payload = _ENTRIES.dump_json(list(self._entries.items())).decode("utf-8")
        self._store.save_setting(self._namespace, self._key, payload)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)
