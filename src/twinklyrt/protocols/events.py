"""Engine events for the observer pattern."""

from enum import Enum


class PowerEvent(Enum):
    """Power/session transitions of one device controller."""

    INITIALIZED = "initialized"              # Login + metadata + layout done
    WOKE = "woke"                            # ForcedOff cleared by render activity
    POWERED_OFF = "powered_off"              # Shutdown sequence sent, ForcedOff entered
    SESSION_RESTORED = "session_restored"    # Health check failed and re-auth succeeded
    LAYOUT_CHANGED = "layout_changed"        # LED positions recomputed


class DiscoveryEvent(Enum):
    """Events from the discovery service."""

    DEVICE_ADDED = "device_added"        # New controller record created
    DEVICE_UPDATED = "device_updated"    # Existing record updated (e.g., new IP)
    DEVICE_REJECTED = "device_rejected"  # Responder failed confirmation
