"""Reusable per-device LED frame buffer."""

import logging
from typing import Sequence

import numpy as np

from twinklyrt.protocols import ColorSource

logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Byte buffer holding one frame: `stride` bytes per LED, 3 = RGB and
    4 = [0x00, R, G, B].

    Also remembers the checksum of the last frame actually sent so the
    controller can skip unchanged frames.
    """

    def __init__(self):
        self._pixels = np.zeros((0, 3), dtype=np.uint8)
        self.last_checksum: int | None = None

    @property
    def led_count(self) -> int:
        return self._pixels.shape[0]

    @property
    def stride(self) -> int:
        return self._pixels.shape[1]

    def ensure(self, led_count: int, stride: int) -> bool:
        """Reallocate for a new LED count or stride. Returns True if it did."""
        if stride not in (3, 4):
            raise ValueError(f"stride must be 3 or 4, got {stride}")
        if self._pixels.shape == (led_count, stride):
            return False
        self._pixels = np.zeros((led_count, stride), dtype=np.uint8)
        self.invalidate()
        logger.debug(f"Frame buffer resized to {led_count} LEDs x {stride} bytes")
        return True

    def invalidate(self) -> None:
        """Forget the last sent checksum so the next frame always sends."""
        self.last_checksum = None

    def fill_solid(self, rgb: tuple[int, int, int]) -> None:
        self._pixels[:, -3:] = np.clip(rgb, 0, 255)

    def fill_from_source(self, positions: Sequence[tuple[int, int]], source: ColorSource) -> None:
        """Sample `source` at every LED position, in frame order."""
        if not positions:
            return
        colors = np.array([source.color_at(x, y) for x, y in positions], dtype=np.int64)
        self._pixels[:, -3:] = np.clip(colors.reshape(-1, 3), 0, 255)

    def tobytes(self) -> bytes:
        return self._pixels.tobytes()
