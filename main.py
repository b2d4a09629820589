#!/usr/bin/env python3
"""
main.py - Quick-start entry point.

Drop tile images into ``downloads/`` (sub-folders become collections),
source images into ``images/`` and run:

    python main.py batch

Or use the full CLI:

    python -m tile_mosaic.cli generate my_photo.jpg --library downloads/
    python -m tile_mosaic.cli index --library downloads/
"""

from tile_mosaic.cli import app

if __name__ == "__main__":
    app()
