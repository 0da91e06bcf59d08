"""Candidate tiles: discovery, parallel loading, average colours."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from tile_mosaic.color_utils import RgbColor
from tile_mosaic.errors import EmptyTileLibrary, UnreadableSource, UnsupportedColorModel
from tile_mosaic.image_io import RasterImage
from tile_mosaic.tile_cache import TileCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tile:
    """A square tile image and its average colour."""

    source: Path
    image: RasterImage
    average: RgbColor

    @classmethod
    def from_image(cls, source: str | Path, image: RasterImage) -> Tile:
        if image.width != image.height:
            msg = f"Tile {source} is not square ({image.width}x{image.height})"
            raise ValueError(msg)
        return cls(Path(source), image, image.average_color())


class TileLibrary:
    """Loads every usable tile in a folder.

    Args:
        cache:     Resized-tile store; ``None`` resizes in memory every run.
        workers:   Thread count for loading (``None`` = executor default).
        max_tiles: Keep only the first *max_tiles* usable tiles.
    """

    def __init__(
        self,
        cache: TileCache | None = None,
        workers: int | None = None,
        max_tiles: int | None = None,
    ) -> None:
        if workers is not None and workers < 1:
            msg = f"workers must be at least 1, got {workers}"
            raise ValueError(msg)
        if max_tiles is not None and max_tiles < 1:
            msg = f"max_tiles must be at least 1, got {max_tiles}"
            raise ValueError(msg)
        self.cache = cache
        self.workers = workers
        self.max_tiles = max_tiles

    def load_all(self, directory: str | Path, side: int) -> list[Tile]:
        """Load, resize and summarise every tile directly under *directory*.

        Entries are visited in name order. Files that cannot be decoded or
        are not RGB are skipped with a warning.

        Raises:
            UnreadableSource: *directory* does not exist.
            EmptyTileLibrary: no usable tile was found.
        """
        directory = Path(directory)
        if not directory.is_dir():
            msg = f"Tile directory not found: {directory}"
            raise UnreadableSource(msg)

        sources = sorted(p for p in directory.iterdir() if p.is_file())
        logger.info("Loading %d candidate tiles from %s ...", len(sources), directory)
        t0 = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            loaded = list(executor.map(lambda p: self._load_one(p, side), sources))

        tiles = [tile for tile in loaded if tile is not None]
        if self.max_tiles is not None:
            tiles = tiles[: self.max_tiles]

        if not tiles:
            msg = f"No usable RGB tiles in {directory}"
            raise EmptyTileLibrary(msg)

        logger.info(
            "%d tiles ready (%d skipped)  (%.1f s)",
            len(tiles), len(sources) - len(tiles), time.perf_counter() - t0,
        )
        return tiles

    def _load_one(self, source: Path, side: int) -> Tile | None:
        try:
            if self.cache is not None:
                image = self.cache.get_or_create(source, side)
            else:
                image = RasterImage.read(source).resize_square(side)
        except (UnreadableSource, UnsupportedColorModel) as exc:
            logger.warning("Skipping tile: %s", exc)
            return None
        return Tile.from_image(source, image)


def average_colors(tiles: list[Tile]) -> list[RgbColor]:
    return [tile.average for tile in tiles]
