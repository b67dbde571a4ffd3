"""Map device-reported LED coordinates onto the integer canvas grid.

Each axis is min/max normalized independently and stretched to
`10 * scale` cells, so a layout spanning the whole device fills the
canvas edge to edge:

```
raw x:   -0.8 ... 0.0 ... 0.8        grid x (x_scale=2):  0 ... 10 ... 20
raw y:    0.0 ... 1.0                grid y (y_scale=2):  0 ... 20
```

A degenerate axis (all LEDs share one coordinate) collapses to 0 instead
of dividing by zero. 3-D layouts project onto the x/z plane.
"""

from typing import Any, Mapping, Sequence

import numpy as np

from twinklyrt.models import LayoutSource, LedLayout

GRID_UNITS = 10


def _round_half_up(values: np.ndarray) -> np.ndarray:
    # Inputs are non-negative, so floor(v + 0.5) rounds .5 upward
    return np.floor(values + 0.5).astype(np.int64)


def _normalize_axis(values: np.ndarray, span: int) -> np.ndarray:
    low = values.min()
    extent = values.max() - low
    if extent == 0:
        return np.zeros(len(values), dtype=np.int64)
    return _round_half_up((values - low) / extent * span)


def normalize_layout(
    coordinates: Sequence[Mapping[str, Any]],
    source: LayoutSource | str = LayoutSource.TWO_D,
    x_scale: int = 2,
    y_scale: int = 2,
) -> LedLayout:
    """
    Convert raw layout coordinates to integer grid positions.

    Args:
        coordinates: Sequence of {"x", "y", "z"} mappings in frame order
        source: "2d" uses (x, y); "3d" uses (x, z)
        x_scale: Horizontal canvas scale (grid width is 10 * x_scale + 1)
        y_scale: Vertical canvas scale (grid height is 10 * y_scale + 1)

    Raises:
        KeyError: A coordinate lacks a required axis
        ValueError: A coordinate value is not numeric
    """
    width = GRID_UNITS * x_scale
    height = GRID_UNITS * y_scale
    depth_axis = "z" if LayoutSource(source) == LayoutSource.THREE_D else "y"

    if not coordinates:
        return LedLayout(positions=(), width=width + 1, height=height + 1)

    xs = np.array([float(c["x"]) for c in coordinates], dtype=np.float64)
    ys = np.array([float(c[depth_axis]) for c in coordinates], dtype=np.float64)

    grid_x = _normalize_axis(xs, width)
    grid_y = _normalize_axis(ys, height)

    positions = tuple(zip(grid_x.tolist(), grid_y.tolist()))
    return LedLayout(positions=positions, width=width + 1, height=height + 1)
