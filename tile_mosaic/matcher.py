"""Nearest-colour matching under squared Euclidean RGB distance.

Every path here resolves ties the same way: the candidate with the lowest
index among those at the minimal distance wins.
"""

from __future__ import annotations

import logging
import time

import numpy as np
from scipy.spatial import cKDTree

from tile_mosaic.color_utils import RgbColor, colors_to_array, squared_distance

logger = logging.getLogger(__name__)

MATCH_METHODS = ("brute", "kdtree")
_CHUNK_ELEMENTS = 1 << 24


def closest_index(target: RgbColor, candidates: list[RgbColor]) -> int:
    """Index of the candidate nearest to *target* (first one on ties)."""
    if not candidates:
        msg = "closest_index needs at least one candidate"
        raise ValueError(msg)

    best_i = 0
    best_d = squared_distance(target, candidates[0])
    for i in range(1, len(candidates)):
        d = squared_distance(target, candidates[i])
        if d < best_d:
            best_d = d
            best_i = i
    return best_i


def match_grid(
    target_pixels: np.ndarray,
    candidates: list[RgbColor],
    method: str = "brute",
    chunk_size: int | None = None,
) -> np.ndarray:
    """Map each pixel of an (H, W, 3) array to its closest candidate.

    Args:
        target_pixels: (H, W, 3) uint8 - the downscaled target.
        candidates:    Tile average colours, in library order.
        method:        ``"brute"`` or ``"kdtree"``.
        chunk_size:    Pixels evaluated per batch by ``"brute"``; by default
                       sized so one batch holds about 16M distance terms.

    Returns:
        (H, W) int64 array of candidate indices.
    """
    if not candidates:
        msg = "match_grid needs at least one candidate"
        raise ValueError(msg)
    if method not in MATCH_METHODS:
        msg = f"Unknown match method '{method}'. Available: {', '.join(MATCH_METHODS)}"
        raise ValueError(msg)

    h, w = target_pixels.shape[:2]
    flat = target_pixels.reshape(-1, 3).astype(np.int64)
    tile_colors = colors_to_array(candidates)

    logger.info(
        "Matching %d pixels against %d tiles (%s) ...", len(flat), len(tile_colors), method,
    )
    t0 = time.perf_counter()
    if method == "kdtree":
        idx = _match_kdtree(flat, tile_colors)
    else:
        idx = _match_brute(flat, tile_colors, chunk_size)
    logger.info("Matching done  (%.1f s)", time.perf_counter() - t0)
    return idx.reshape(h, w)


def _match_brute(flat: np.ndarray, tile_colors: np.ndarray, chunk_size: int | None) -> np.ndarray:
    n = len(flat)
    if chunk_size is None:
        chunk_size = max(1, _CHUNK_ELEMENTS // (3 * len(tile_colors)))
    out = np.empty(n, dtype=np.int64)
    for i in range(0, n, chunk_size):
        j = min(i + chunk_size, n)
        diff = flat[i:j, np.newaxis, :] - tile_colors[np.newaxis, :, :]
        d2 = np.sum(diff * diff, axis=2)
        # argmin returns the first occurrence of the minimum
        out[i:j] = np.argmin(d2, axis=1)
    return out


def _match_kdtree(flat: np.ndarray, tile_colors: np.ndarray) -> np.ndarray:
    # Duplicate colours collapse onto their first index, so the tree only
    # has to break ties between distinct colours.
    unique, first_idx = np.unique(tile_colors, axis=0, return_index=True)
    tree = cKDTree(unique.astype(np.float64))

    pixels, inverse = np.unique(flat, axis=0, return_inverse=True)
    dist, _ = tree.query(pixels.astype(np.float64), k=1)

    best = np.empty(len(pixels), dtype=np.int64)
    for p, (pixel, d) in enumerate(zip(pixels, dist, strict=True)):
        # distinct integer distances differ by far more than the slack
        near = np.asarray(tree.query_ball_point(pixel.astype(np.float64), r=d + 1e-6))
        d2 = np.sum((unique[near] - pixel) ** 2, axis=1)
        best[p] = first_idx[near[d2 == d2.min()]].min()
    return best[inverse.reshape(-1)]
