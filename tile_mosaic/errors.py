"""Exception hierarchy for mosaic runs.

Per-tile source errors are recoverable (the tile is skipped); everything
else aborts the run.
"""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for every error raised by the mosaic pipeline."""


class UnreadableSource(MosaicError, OSError):
    """A file is missing or cannot be decoded."""


class UnsupportedColorModel(MosaicError, ValueError):
    """A decoded image is not RGB-compatible (palette, greyscale, alpha ...)."""


class EmptyTileLibrary(MosaicError):
    """No usable tiles were left after filtering."""


class OutputTooLarge(MosaicError, MemoryError):
    """The composed image would exceed the addressable pixel count."""


class PersistenceFailure(MosaicError, OSError):
    """Writing a PNG (cache entry or final output) failed."""


class MalformedGrid(MosaicError, ValueError):
    """The tile grid is empty, ragged, or mixes tile dimensions."""
