"""
Tile Mosaic
===========

Rebuild a target image out of a folder of small tile images. The target
is downscaled so that every remaining pixel becomes one tile, and each
pixel is replaced by the tile whose average colour is nearest to it.

Resized tiles are memoised on disk so repeated runs over the same tile
set skip the expensive decode/resize step.
"""

__version__ = "1.0.0"

from tile_mosaic.color_utils import RgbColor, squared_distance
from tile_mosaic.composer import (
    MosaicComposer,
    MosaicResult,
    check_output_size,
    combine_tiles,
    output_path_for,
)
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import (
    EmptyTileLibrary,
    MalformedGrid,
    MosaicError,
    OutputTooLarge,
    PersistenceFailure,
    UnreadableSource,
    UnsupportedColorModel,
)
from tile_mosaic.image_io import RasterImage
from tile_mosaic.matcher import closest_index, match_grid
from tile_mosaic.tile_cache import TileCache
from tile_mosaic.tile_library import Tile, TileLibrary

__all__ = [
    "EmptyTileLibrary",
    "MalformedGrid",
    "MosaicComposer",
    "MosaicConfig",
    "MosaicError",
    "MosaicResult",
    "OutputTooLarge",
    "PersistenceFailure",
    "RasterImage",
    "RgbColor",
    "Tile",
    "TileCache",
    "TileLibrary",
    "UnreadableSource",
    "UnsupportedColorModel",
    "check_output_size",
    "closest_index",
    "combine_tiles",
    "match_grid",
    "output_path_for",
    "squared_distance",
]
