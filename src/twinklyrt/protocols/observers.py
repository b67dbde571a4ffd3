"""Observer protocols for engine events."""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .events import DiscoveryEvent, PowerEvent

if TYPE_CHECKING:
    from twinklyrt.models import DiscoveryCandidate


@runtime_checkable
class PowerObserver(Protocol):
    """Observer that receives device power/session transitions."""

    def on_power_event(self, event: PowerEvent, device_ip: str) -> None:
        """
        Handle a power/session transition.

        Note:
            Called from the render tick, the idle checker or an HTTP worker
            thread. Implementations must be thread-safe and must not block.
        """
        ...


@runtime_checkable
class DiscoveryObserver(Protocol):
    """Observer that receives discovery results."""

    def on_discovery_event(self, event: DiscoveryEvent, candidate: "DiscoveryCandidate") -> None:
        """
        Handle a discovery result.

        Note:
            Called from the discovery listener thread.
        """
        ...
