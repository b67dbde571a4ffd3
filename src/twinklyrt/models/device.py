"""Device identity, metadata and layout models."""

from pydantic import BaseModel, ConfigDict, Field


class DeviceInfo(BaseModel):
    """Metadata fetched from a controller after login.

    Fields stay None until the corresponding fetch succeeds; a failed or
    malformed fetch leaves previously cached values untouched.
    """

    device_name: str | None = None
    mac: str | None = None
    product_code: str | None = None
    hardware_revision: str | None = None
    firmware_version: str | None = None
    led_count: int | None = Field(default=None, ge=0)
    bytes_per_led: int | None = Field(default=None, ge=0)
    previous_brightness: int | None = Field(
        default=None, description="Brightness captured before takeover (restore semantics)"
    )

    @property
    def stride(self) -> int:
        """Bytes written per LED in a real-time frame (3 = RGB, 4 = pad+RGB)."""
        return 4 if self.bytes_per_led == 4 else 3


class LedLayout(BaseModel):
    """Integer grid coordinates for every LED, index-aligned with frame order."""

    model_config = ConfigDict(frozen=True)

    positions: tuple[tuple[int, int], ...] = ()
    width: int = 1
    height: int = 1

    @property
    def led_count(self) -> int:
        return len(self.positions)

    @property
    def names(self) -> list[str]:
        return [f"LED {i + 1}" for i in range(len(self.positions))]


class CacheEntry(BaseModel):
    """A confirmed device identity, persisted across restarts."""

    id: str
    name: str
    ip: str
    port: int | str = 5555


class DiscoveryCandidate(BaseModel):
    """A device that answered a discovery probe (or was added by IP)."""

    ip: str
    id: str = "00:00:00:00:00:00"
    name: str = "New Twinkly Device"
    port: int | str = 5555
    response: str = ""

    def to_cache_entry(self) -> CacheEntry:
        return CacheEntry(id=self.id, name=self.name, ip=self.ip, port=self.port)
