"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

# Largest pixel count whose (H, W, 3) uint8 buffer the platform can index.
MAX_ADDRESSABLE_PIXELS: int = int(np.iinfo(np.intp).max) // 3


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        scale:             Factor applied to the target before gridding; each
                           remaining pixel becomes one tile.
        tile_side:         Side length (px) every tile is resized to.
        tiles_dir:         Folder of candidate tile images (non-recursive).
        cache_dir:         Where resized tiles are memoised between runs.
        use_cache:         Read/write the on-disk tile cache.
        matcher:           "brute" (reference scan) or "kdtree" (scipy).
        workers:           Thread count for tile loading (None = executor default).
        max_tiles:         Keep at most this many usable tiles (None = all).
        max_output_pixels: Abort before composing anything larger than this.
        output_suffix:     Appended to the target's stem for the output file.
        input_dir:         Folder scanned by the ``batch`` command.
    """

    # Target
    scale: float = 0.25

    # Tiles
    tile_side: int = 50
    tiles_dir: Path = field(default_factory=lambda: Path("data/small-images"))
    max_tiles: int | None = None
    workers: int | None = None

    # Cache
    cache_dir: Path = field(default_factory=lambda: Path("data/cache"))
    use_cache: bool = True

    # Matching
    matcher: str = "brute"  # "brute" | "kdtree"

    # Output
    max_output_pixels: int = MAX_ADDRESSABLE_PIXELS
    output_suffix: str = "-output"

    # Batch
    input_dir: Path = field(default_factory=lambda: Path("images"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )
