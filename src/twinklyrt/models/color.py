"""Color model for LED output."""

import re

from pydantic import BaseModel, ConfigDict, Field

_HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


class Color(BaseModel):
    """Standard 8-bit RGB color.

    Frozen so it can be compared cheaply and used as a dict key when the
    controller checks whether the forced color changed.
    """

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255, description="Red (0-255)")
    g: int = Field(ge=0, le=255, description="Green (0-255)")
    b: int = Field(ge=0, le=255, description="Blue (0-255)")

    @classmethod
    def off(cls) -> "Color":
        """Create off (black) color."""
        return cls(r=0, g=0, b=0)

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parse '#RRGGBB' (leading '#' optional).

        Unparseable strings map to black, which is also what the device
        shows for a missing color.

        Example:
            >>> Color.from_hex("#FF8000")
            Color(r=255, g=128, b=0)
        """
        match = _HEX_COLOR.match(value.strip()) if isinstance(value, str) else None
        if not match:
            return cls.off()
        return cls(r=int(match[1], 16), g=int(match[2], 16), b=int(match[3], 16))

    def to_rgb_tuple(self) -> tuple[int, int, int]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        """Convert to hex color string (e.g., '#FF0000')."""
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"
