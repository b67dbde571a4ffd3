"""Per-device user settings.

The host's settings surface produces one `SignalSettings` snapshot; the
controller diffs successive snapshots to run its change hooks instead of
looking settings up by name at use sites.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .color import Color
from .enums import LightingMode, StartMode


class SignalSettings(BaseModel):
    """User-configurable lighting, power, layout and performance settings."""

    model_config = ConfigDict(frozen=True)

    # Lighting
    shutdown_color: Color = Field(
        default_factory=Color.off,
        description="Color sent before the device is switched off (shutdown/idle)",
    )
    lighting_mode: LightingMode = Field(
        default=LightingMode.CANVAS,
        description="Canvas samples the host color source; Forced uses forced_color",
    )
    forced_color: Color = Field(
        default_factory=lambda: Color(r=255, g=0, b=0),
        description="Color used on every LED in Forced mode",
    )

    # Power
    start_mode: StartMode = Field(
        default=StartMode.RT, description="Off keeps the device dark until changed"
    )
    keep_off_on_shutdown: bool = Field(
        default=True, description="Force the device off on host shutdown/suspend"
    )
    send_black_on_shutdown: bool = Field(
        default=True, description="Send the shutdown color before switching off"
    )
    immediate_pause_off: bool = Field(
        default=True, description="Switch off as soon as frames stop (300 ms)"
    )
    off_when_idle: bool = Field(
        default=True, description="Fallback: switch off after idle_off_seconds"
    )
    idle_off_seconds: int = Field(default=5, ge=2, le=60, description="Idle timeout in seconds")

    # Network
    auto_reconnect: bool = Field(
        default=True, description="Re-authenticate when the health check fails"
    )

    # Layout
    x_scale: int = Field(default=2, ge=1, le=10, description="Width scale of the LED canvas")
    y_scale: int = Field(default=2, ge=1, le=10, description="Height scale of the LED canvas")

    # Performance
    fps_limit: int = Field(default=45, ge=10, le=120, description="Max frames per second")
    keepalive_seconds: int = Field(
        default=0, ge=0, le=120, description="Forced mode resend interval (0 = send on change only)"
    )

    @field_validator("shutdown_color", "forced_color", mode="before")
    @classmethod
    def parse_hex_color(cls, value: Any) -> Any:
        """Accept '#RRGGBB' strings as well as Color objects/dicts."""
        if isinstance(value, str):
            return Color.from_hex(value)
        return value

    @field_serializer("shutdown_color", "forced_color")
    def serialize_color(self, color: Color) -> str:
        """Serialize colors as hex strings."""
        return color.to_hex()

    @property
    def idle_off_ms(self) -> int:
        return self.idle_off_seconds * 1000

    @property
    def keepalive_ms(self) -> int:
        return self.keepalive_seconds * 1000
