"""Built-in color sources for `twinklyrt run`."""

import colorsys
import time
from typing import Callable

from twinklyrt.models import Color


class SolidColor:
    """Same color at every coordinate."""

    def __init__(self, color: Color):
        self._rgb = color.to_rgb_tuple()

    def color_at(self, x: int, y: int) -> tuple[int, int, int]:
        return self._rgb


class RainbowSource:
    """Hue sweeps across the canvas width and scrolls over time."""

    def __init__(self, width: int, period: float = 4.0, clock: Callable[[], float] | None = None):
        """
        Args:
            width: Canvas width in grid cells (one full hue cycle across it)
            period: Seconds for the pattern to scroll one full cycle
            clock: Seconds clock (monotonic if None)
        """
        self.width = max(width, 1)
        self.period = period
        self._clock = clock or time.monotonic

    def color_at(self, x: int, y: int) -> tuple[int, int, int]:
        phase = (self._clock() / self.period) % 1.0
        hue = (x / self.width + phase) % 1.0
        r, g, b = colorsys.hsv_to_rgb(hue, 1.0, 1.0)
        return int(r * 255), int(g * 255), int(b * 255)
