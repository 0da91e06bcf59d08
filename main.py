#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

Put tile images into ``data/small-images/`` and run:

    python main.py single data/big-image.jpg

Or use the full CLI:

    python -m tile_mosaic.cli batch --help
    python -m tile_mosaic.cli single my_photo.jpg --scale 0.1 --tile-side 20
"""

from tile_mosaic.cli import app

if __name__ == "__main__":
    app()
