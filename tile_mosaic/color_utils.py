"""RGB colour value type and distance."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class RgbColor:
    """An 8-bit RGB triple."""

    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                msg = f"{name} must be an integer, got {value!r}"
                raise ValueError(msg)
            if not 0 <= value <= 255:
                msg = f"{name} must be in [0, 255], got {value}"
                raise ValueError(msg)
            # normalise numpy scalars so equality / hashing stay plain-int
            object.__setattr__(self, name, int(value))

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.red, self.green, self.blue)


def squared_distance(a: RgbColor, b: RgbColor) -> int:
    """Squared Euclidean distance in RGB space."""
    dr = a.red - b.red
    dg = a.green - b.green
    db = a.blue - b.blue
    return dr * dr + dg * dg + db * db


def colors_to_array(colors) -> np.ndarray:
    """Stack RgbColor values into an (N, 3) int64 array."""
    if not colors:
        return np.empty((0, 3), dtype=np.int64)
    return np.array([c.as_tuple() for c in colors], dtype=np.int64)
