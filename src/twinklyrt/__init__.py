"""twinklyrt: real-time frame streaming and power management for Twinkly LED controllers."""

__version__ = "0.1.0"

# Device engine
from .device import DeviceController

# Discovery
from .discovery import DeviceCache, DiscoveryManager, DiscoveryService

__all__ = [
    "DeviceCache",
    "DeviceController",
    "DiscoveryManager",
    "DiscoveryService",
]
