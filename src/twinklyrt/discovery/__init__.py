"""Discovery of Twinkly controllers on the local network."""

from .cache import CACHE_KEY, CACHE_NAMESPACE, DeviceCache
from .manager import DiscoveryManager
from .service import DISCOVERY_PORT, PROBE_PAYLOAD, DiscoveryService
from .store import JsonSettingsStore, StoredSettings

__all__ = [
    "CACHE_KEY",
    "CACHE_NAMESPACE",
    "DISCOVERY_PORT",
    "DeviceCache",
    "DiscoveryManager",
    "DiscoveryService",
    "JsonSettingsStore",
    "PROBE_PAYLOAD",
    "StoredSettings",
]
