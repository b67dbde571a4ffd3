"""Application configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field, field_serializer

from twinklyrt.model_manager.persistence import PydanticPersistence

from .settings import SignalSettings

DEFAULT_HOME = Path.home() / ".twinklyrt"


class AppConfig(BaseModel):
    """Application configuration and engine defaults."""

    # Paths
    state_path: Path = Field(
        default_factory=lambda: DEFAULT_HOME / "state.json",
        description="File used as persistent key/value storage (device cache)",
    )

    # Network
    http_timeout: float = Field(
        default=3.0, gt=0, description="Timeout for device HTTP requests (seconds)"
    )
    discovery_poll_interval: float = Field(
        default=60.0, ge=1.0, description="Minimum seconds between discovery broadcasts"
    )
    health_check_interval: float = Field(
        default=60.0, ge=1.0, description="Seconds between device health checks"
    )

    # Rendering
    tick_rate: float = Field(
        default=60.0, gt=0, le=240, description="Render ticks per second for 'run'"
    )

    # Device defaults
    device: SignalSettings = Field(
        default_factory=SignalSettings,
        description="Default lighting/power settings for every device",
    )

    @field_serializer("state_path")
    def serialize_path(self, path: Path) -> str:
        """Serialize Path to string."""
        return str(path)

    @classmethod
    def default_path(cls) -> Path:
        return DEFAULT_HOME / "config.json"

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """
        Load config from file or return default.

        Args:
            path: Path to config file. If None, uses ~/.twinklyrt/config.json.

        Raises:
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        return PydanticPersistence.load_json_or_default(path or cls.default_path(), cls)

    def save(self, path: Path | None = None) -> None:
        """Save config to file (with .bak backup)."""
        PydanticPersistence.save_json(self, path or self.default_path())
