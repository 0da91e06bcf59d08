"""How closely a mosaic's tile colours follow the downscaled target."""

from __future__ import annotations

import numpy as np
from skimage.color import deltaE_cie76, rgb2lab

from tile_mosaic.color_utils import colors_to_array
from tile_mosaic.tile_library import Tile, average_colors


def preview_from_grid(index_map: np.ndarray, tiles: list[Tile]) -> np.ndarray:
    """(rows, cols, 3) uint8 image of the chosen tiles' average colours."""
    colors = colors_to_array(average_colors(tiles)).astype(np.uint8)
    return colors[index_map]


def mean_rgb_error(target: np.ndarray, preview: np.ndarray) -> float:
    """Mean Euclidean RGB distance per grid cell."""
    t = target.reshape(-1, 3).astype(np.float64)
    m = preview.reshape(-1, 3).astype(np.float64)
    return float(np.mean(np.sqrt(np.sum((t - m) ** 2, axis=1))))


def mean_delta_e(target: np.ndarray, preview: np.ndarray) -> float:
    """Mean CIE76 colour difference per grid cell, in CIELAB units."""
    t = rgb2lab(target.astype(np.float64) / 255.0)
    m = rgb2lab(preview.astype(np.float64) / 255.0)
    return float(np.mean(deltaE_cie76(t, m)))
