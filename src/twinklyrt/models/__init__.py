"""Data models for the Twinkly real-time engine."""

from .color import Color
from .config import AppConfig
from .device import CacheEntry, DeviceInfo, DiscoveryCandidate, LedLayout
from .enums import BrightnessMode, LayoutSource, LedMode, LightingMode, PowerState, StartMode
from .settings import SignalSettings

__all__ = [
    "AppConfig",
    # Enums
    "BrightnessMode",
    # Models
    "CacheEntry",
    "Color",
    "DeviceInfo",
    "DiscoveryCandidate",
    "LayoutSource",
    "LedLayout",
    "LedMode",
    "LightingMode",
    "PowerState",
    "SignalSettings",
    "StartMode",
]
