"""End-to-end mosaic pipeline.

load target -> downscale -> size guard -> load tiles -> match -> validate
grid -> compose -> save
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path

import numpy as np

from tile_mosaic.config import MAX_ADDRESSABLE_PIXELS, MosaicConfig
from tile_mosaic.errors import MalformedGrid, OutputTooLarge
from tile_mosaic.image_io import RasterImage
from tile_mosaic.matcher import MATCH_METHODS, match_grid
from tile_mosaic.tile_cache import TileCache
from tile_mosaic.tile_library import Tile, TileLibrary, average_colors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MosaicResult:
    """Everything a run produced.

    Attributes:
        target:      The downscaled target; one pixel per tile.
        index_map:   (rows, cols) indices into *tiles*.
        tiles:       The tile library the indices refer to.
        image:       The composed mosaic.
        output_path: Where *image* was written, if it was.
    """

    target: RasterImage
    index_map: np.ndarray
    tiles: list[Tile]
    image: RasterImage
    output_path: Path | None = None


def check_output_size(
    cols: int,
    rows: int,
    tile_side: int,
    limit: int = MAX_ADDRESSABLE_PIXELS,
) -> int:
    """Return the composed pixel count, or raise if it exceeds *limit*."""
    width = cols * tile_side
    height = rows * tile_side
    total = width * height
    if total > limit:
        msg = (
            f"Combined image too big: {width}x{height} = {total:,} pixels "
            f"(limit {limit:,})"
        )
        raise OutputTooLarge(msg)
    return total


def combine_tiles(grid: Sequence[Sequence[RasterImage]]) -> RasterImage:
    """Blit a rows x cols grid of equally-sized images into one image."""
    if not grid or not grid[0]:
        msg = "Expected grid to be non-empty"
        raise MalformedGrid(msg)
    cols = len(grid[0])
    if any(len(row) != cols for row in grid):
        msg = "Expected all rows in the grid to be of the same size"
        raise MalformedGrid(msg)
    sizes = {img.size for row in grid for img in row}
    if len(sizes) != 1:
        msg = f"Expected all images to have the same dimensions, got {sorted(sizes)}"
        raise MalformedGrid(msg)

    rows = len(grid)
    w, h = sizes.pop()
    combined = np.empty((rows * h, cols * w, 3), dtype=np.uint8)
    for r, row in enumerate(grid):
        y = r * h
        for c, img in enumerate(row):
            x = c * w
            combined[y : y + h, x : x + w] = img.array
    return RasterImage(combined)


def output_path_for(target_path: str | Path, suffix: str = "-output") -> Path:
    """``<dir>/<stem><suffix>.png`` beside the target."""
    target_path = Path(target_path)
    return target_path.with_name(f"{target_path.stem}{suffix}.png")


class MosaicComposer:
    """Builds a tile mosaic from a target image and a folder of tiles."""

    def __init__(
        self,
        config: MosaicConfig | None = None,
        library: TileLibrary | None = None,
    ) -> None:
        config = config or MosaicConfig()
        if not config.scale > 0:
            msg = f"scale must be positive, got {config.scale}"
            raise ValueError(msg)
        if config.tile_side < 1:
            msg = f"tile_side must be a positive integer, got {config.tile_side}"
            raise ValueError(msg)
        if config.matcher not in MATCH_METHODS:
            msg = f"Unknown matcher '{config.matcher}'. Available: {', '.join(MATCH_METHODS)}"
            raise ValueError(msg)
        for name in ("workers", "max_tiles"):
            value = getattr(config, name)
            if value is not None and value < 1:
                msg = f"{name} must be a positive integer or None, got {value}"
                raise ValueError(msg)

        self.config = config
        if library is None:
            cache = TileCache(config.cache_dir) if config.use_cache else None
            library = TileLibrary(cache, workers=config.workers, max_tiles=config.max_tiles)
        self.library = library

    def build(self, target: RasterImage) -> MosaicResult:
        """Compose a mosaic for an already-decoded target."""
        cfg = self.config
        t_total = time.perf_counter()

        cols, rows = target.scaled_size(cfg.scale)
        logger.info(
            "Target: %dx%d -> %dx%d grid (scale %s)",
            target.width, target.height, cols, rows, cfg.scale,
        )

        total = check_output_size(cols, rows, cfg.tile_side, cfg.max_output_pixels)
        logger.info(
            "Combined image: %dx%d = %d pixels",
            cols * cfg.tile_side, rows * cfg.tile_side, total,
        )
        small = target.resize(cols, rows)

        tiles = self.library.load_all(cfg.tiles_dir, cfg.tile_side)
        index_map = match_grid(small.array, average_colors(tiles), method=cfg.matcher)

        logger.info("Combining images ...")
        t0 = time.perf_counter()
        grid = [[tiles[i].image for i in row] for row in index_map]
        image = combine_tiles(grid)
        logger.info("Combined  (%.1f s)", time.perf_counter() - t0)

        logger.info("build() finished  (%.1f s)", time.perf_counter() - t_total)
        return MosaicResult(target=small, index_map=index_map, tiles=tiles, image=image)

    def run(
        self,
        target_path: str | Path,
        output_path: str | Path | None = None,
    ) -> MosaicResult:
        """Read *target_path*, build its mosaic and write it as PNG.

        The output defaults to ``<target-stem>-output.png`` beside the target.
        """
        target_path = Path(target_path)
        logger.info("Reading target %s", target_path)
        target = RasterImage.read(target_path)

        result = self.build(target)

        if output_path is None:
            output_path = output_path_for(target_path, self.config.output_suffix)
        output_path = Path(output_path)
        logger.info("Saving combined image to %s", output_path)
        result.image.save(output_path)

        return replace(result, output_path=output_path)
