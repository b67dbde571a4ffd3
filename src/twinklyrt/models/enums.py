"""Enums shared by the device engine."""

from enum import Enum


class LightingMode(str, Enum):
    """Where per-LED colors come from."""

    CANVAS = "Canvas"  # Host color source sampled at each LED coordinate
    FORCED = "Forced"  # One fixed user-chosen color on every LED


class StartMode(str, Enum):
    """What the device does when the engine takes it over."""

    OFF = "Off"
    RT = "RT (Live)"
    RESTORE = "Restore"


class PowerState(str, Enum):
    """Render/power state of one controller."""

    ACTIVE = "active"
    FORCED_OFF = "forced_off"


class LedMode(str, Enum):
    """LED modes understood by /xled/v1/led/mode."""

    OFF = "off"
    COLOR = "color"
    DEMO = "demo"
    MOVIE = "movie"
    PLAYLIST = "playlist"
    EFFECT = "effect"
    RT = "rt"


class BrightnessMode(str, Enum):
    """Brightness modes understood by /xled/v1/led/out/brightness."""

    ENABLED = "enabled"
    DISABLED = "disabled"


class LayoutSource(str, Enum):
    """Coordinate system reported by /xled/v1/led/layout/full."""

    TWO_D = "2d"
    THREE_D = "3d"
