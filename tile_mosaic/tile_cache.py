"""On-disk memoisation of resized tiles.

Decoding a large photo is far more expensive than reading back a small
PNG, so every resized tile is written to ``<cache_dir>/<stem>-<W>x<H>.png``
and reused on later runs.

The key is the source's *stem* plus the requested dimensions only:

- two sources with the same stem (``a/cat.jpg``, ``b/cat.png``) share an
  entry;
- editing a source does not invalidate its entry, the stale PNG wins.

Entries are never evicted. Delete the directory to start afresh.
"""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from pathlib import Path

from tile_mosaic.errors import PersistenceFailure, UnreadableSource, UnsupportedColorModel
from tile_mosaic.image_io import RasterImage

logger = logging.getLogger(__name__)


class TileCache:
    """Resize-and-remember store rooted at *cache_dir*."""

    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def cache_path(self, source: str | Path, width: int, height: int) -> Path:
        return self.cache_dir / f"{Path(source).stem}-{width}x{height}.png"

    def get_or_create(self, source: str | Path, side: int) -> RasterImage:
        """Return *source* resized to ``side x side``, via the cache.

        Raises:
            UnreadableSource / UnsupportedColorModel: on a cache miss, when
                the source itself cannot be used.
        """
        cache_path = self.cache_path(source, side, side)
        if cache_path.exists():
            logger.debug("reading from cache: %s", cache_path)
            try:
                return RasterImage.read(cache_path)
            except (UnreadableSource, UnsupportedColorModel) as exc:
                logger.warning("Ignoring unusable cache entry: %s", exc)

        image = RasterImage.read(source).resize_square(side)
        logger.debug("writing to cache: %s", cache_path)
        try:
            self._write(image, cache_path)
        except PersistenceFailure as exc:
            logger.warning("Cache write failed, tile will be recomputed: %s", exc)
        return image

    @staticmethod
    def _write(image: RasterImage, cache_path: Path) -> None:
        # Readers must never observe a half-written PNG.
        tmp = cache_path.with_name(
            f".{cache_path.name}.{os.getpid()}.{threading.get_ident()}.tmp",
        )
        try:
            image.save(tmp)
            tmp.replace(cache_path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            if isinstance(exc, PersistenceFailure):
                raise
            msg = f"Could not move {tmp} to {cache_path}: {exc}"
            raise PersistenceFailure(msg) from exc
