"""Protocol definitions for engine events, observers and host contracts."""

from .events import DiscoveryEvent, PowerEvent
from .host import ColorSource, LifecycleHooks, SettingsProvider, SettingsStore
from .observers import DiscoveryObserver, PowerObserver

__all__ = [
    # Host contracts
    "ColorSource",
    # Events
    "DiscoveryEvent",
    # Observers
    "DiscoveryObserver",
    "LifecycleHooks",
    "PowerEvent",
    "PowerObserver",
    "SettingsProvider",
    "SettingsStore",
]
