"""Contracts between the engine and its host application.

The host owns the color source, the settings surface, the tick scheduler
and durable key/value storage. The engine only depends on these protocols.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from twinklyrt.models import SignalSettings


@runtime_checkable
class ColorSource(Protocol):
    """Supplies the color of the canvas at an LED coordinate."""

    def color_at(self, x: int, y: int) -> tuple[int, int, int]:
        """Return (r, g, b), each 0-255, for grid cell (x, y)."""
        ...


@runtime_checkable
class SettingsProvider(Protocol):
    """Supplies the current typed device settings."""

    def current_settings(self) -> "SignalSettings":
        ...


@runtime_checkable
class LifecycleHooks(Protocol):
    """Hooks the host scheduler invokes on the engine."""

    def on_tick(self) -> None:
        """Called once per render tick."""
        ...

    def on_shutdown(self, suspending: bool) -> None:
        """Called on application exit (suspending=False) or system suspend."""
        ...


@runtime_checkable
class SettingsStore(Protocol):
    """Durable key/value storage, addressed by (namespace, key)."""

    def get_setting(self, namespace: str, key: str) -> str | None:
        ...

    def save_setting(self, namespace: str, key: str, value: str) -> None:
        ...

    def remove_setting(self, namespace: str, key: str) -> None:
        ...
