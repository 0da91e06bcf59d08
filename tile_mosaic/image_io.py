"""Decoded RGB images: loading, resizing, averaging and PNG output."""

from __future__ import annotations

import logging
import struct
from pathlib import Path

import numpy as np
from PIL import Image

from tile_mosaic.color_utils import RgbColor
from tile_mosaic.errors import PersistenceFailure, UnreadableSource, UnsupportedColorModel

logger = logging.getLogger(__name__)

# Modes accepted as-is or via a lossless conversion to "RGB".
RGB_MODES = frozenset({"RGB", "RGBX"})

# What Pillow's decoders raise on truncated or malformed input.
DECODE_ERRORS = (
    OSError,
    SyntaxError,
    ValueError,
    EOFError,
    struct.error,
    Image.DecompressionBombError,
)


class RasterImage:
    """Immutable RGB pixel buffer.

    Pixels are held as a read-only (H, W, 3) uint8 array in row-major
    order. Two images are equal when their dimensions and every pixel
    match.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        """Wrap *pixels* without copying.

        The image takes ownership of the array and marks it read-only;
        use :meth:`from_array` to keep the caller's buffer writable.
        """
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            msg = f"Expected an (H, W, 3) array, got shape {pixels.shape}"
            raise ValueError(msg)
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            msg = f"Image must be at least 1x1, got {pixels.shape[1]}x{pixels.shape[0]}"
            raise ValueError(msg)
        if pixels.dtype != np.uint8:
            msg = f"Expected uint8 pixels, got {pixels.dtype}"
            raise ValueError(msg)
        pixels.flags.writeable = False
        self._pixels = pixels

    # -- Construction --------------------------------------------------

    @classmethod
    def from_array(cls, array: np.ndarray) -> RasterImage:
        """Copy an (H, W, 3) array of 0-255 values into a new image."""
        arr = np.asarray(array)
        if arr.dtype != np.uint8:
            if arr.size and (arr.min() < 0 or arr.max() > 255):
                msg = "Pixel values must be in [0, 255]"
                raise ValueError(msg)
            arr = arr.astype(np.uint8)
        return cls(np.array(arr, dtype=np.uint8, copy=True))

    @classmethod
    def uniform(cls, width: int, height: int, color: RgbColor) -> RasterImage:
        """A width x height image filled with one colour."""
        arr = np.empty((height, width, 3), dtype=np.uint8)
        arr[:] = color.as_tuple()
        return cls(arr)

    @classmethod
    def read(cls, path: str | Path) -> RasterImage:
        """Decode *path*.

        Raises:
            UnreadableSource: the file is missing or cannot be decoded.
            UnsupportedColorModel: the decoded mode is not RGB-compatible.
        """
        path = Path(path)
        logger.debug("read(%s)", path)
        try:
            with Image.open(path) as img:
                img.load()
                mode = img.mode
                if mode not in RGB_MODES:
                    msg = f"{path} is not RGB (mode={mode})"
                    raise UnsupportedColorModel(msg)
                if mode != "RGB":
                    img = img.convert("RGB")
                pixels = np.array(img, dtype=np.uint8)
        except UnsupportedColorModel:
            raise
        except DECODE_ERRORS as exc:
            msg = f"Could not read image {path}: {exc}"
            raise UnreadableSource(msg) from exc
        return cls(pixels)

    @classmethod
    def load(cls, path: str | Path) -> RasterImage | None:
        """Like :meth:`read` but logs and returns ``None`` on failure."""
        try:
            return cls.read(path)
        except (UnreadableSource, UnsupportedColorModel) as exc:
            logger.warning("%s", exc)
            return None

    # -- Accessors -----------------------------------------------------

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def array(self) -> np.ndarray:
        """Read-only (H, W, 3) uint8 view of the pixels."""
        return self._pixels

    def get_pixel(self, x: int, y: int) -> RgbColor:
        if not 0 <= x < self.width:
            msg = f"x={x} out of bounds for width {self.width}"
            raise IndexError(msg)
        if not 0 <= y < self.height:
            msg = f"y={y} out of bounds for height {self.height}"
            raise IndexError(msg)
        r, g, b = self._pixels[y, x]
        return RgbColor(int(r), int(g), int(b))

    def average_color(self) -> RgbColor:
        """Per-channel mean over all pixels, floor-divided."""
        count = self.width * self.height
        sums = self._pixels.reshape(-1, 3).sum(axis=0, dtype=np.int64)
        r, g, b = (int(s) // count for s in sums)
        return RgbColor(r, g, b)

    # -- Transforms ----------------------------------------------------

    def resize(self, width: int, height: int) -> RasterImage:
        """Force exact (width, height) using an area (box) filter.

        Aspect ratio is not preserved; nothing is cropped or padded.
        """
        if width < 1 or height < 1:
            msg = f"Resize target must be at least 1x1, got {width}x{height}"
            raise ValueError(msg)
        if (width, height) == self.size:
            return self
        logger.debug(
            "resizing image from %dx%d to %dx%d",
            self.width, self.height, width, height,
        )
        img = Image.fromarray(self._pixels)
        img = img.resize((width, height), Image.BOX)
        return RasterImage(np.array(img, dtype=np.uint8))

    def scaled_size(self, scale: float) -> tuple[int, int]:
        """(width, height) after scaling by *scale* (truncated, minimum 1)."""
        if not scale > 0:
            msg = f"Scale must be positive, got {scale}"
            raise ValueError(msg)
        return max(1, int(scale * self.width)), max(1, int(scale * self.height))

    def resize_scaled(self, scale: float) -> RasterImage:
        return self.resize(*self.scaled_size(scale))

    def resize_square(self, side: int) -> RasterImage:
        return self.resize(side, side)

    # -- Output --------------------------------------------------------

    def save(self, path: str | Path) -> None:
        """Write a lossless PNG to *path*."""
        path = Path(path)
        logger.debug("save(%s)", path)
        try:
            Image.fromarray(self._pixels).save(path, format="PNG")
        except OSError as exc:
            msg = f"Could not write image {path}: {exc}"
            raise PersistenceFailure(msg) from exc

    # -- Value semantics -----------------------------------------------

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, RasterImage):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    def __hash__(self) -> int:
        return hash((self.width, self.height, self._pixels.tobytes()))

    def __repr__(self) -> str:
        return f"RasterImage({self.width}x{self.height})"
