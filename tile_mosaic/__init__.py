"""
Tile Mosaic Generator
=====================

Rebuild any image out of a library of small tile images. Every grid cell
of the source is replaced by the library tile whose average colour is
closest, while a short recency window keeps the same tile from repeating
in neighbouring cells. Ships two matchers:

- **Linear** (brute-force scan, numpy)
- **k-d tree** (scipy, same results)
"""

__version__ = "1.0.0"

from tile_mosaic.assembler import MosaicReport, assemble, assemble_with_report
from tile_mosaic.color_utils import average_color, cell_colors, squared_distance
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import (
    DecodeError,
    EmptyIndex,
    ImageTooSmall,
    MosaicError,
    NoOpaquePixels,
    TileCompositeFailure,
)
from tile_mosaic.library import TileSource, in_memory_library, scan_library
from tile_mosaic.recency import RecencyWindow, recency_capacity
from tile_mosaic.selector import KDTreeSelector, LinearSelector, make_selector
from tile_mosaic.service import generate_mosaic, load_index, render_mosaic
from tile_mosaic.tile_index import Tile, TileIndex

__all__ = [
    "DecodeError",
    "EmptyIndex",
    "ImageTooSmall",
    "KDTreeSelector",
    "LinearSelector",
    "MosaicConfig",
    "MosaicError",
    "MosaicReport",
    "NoOpaquePixels",
    "RecencyWindow",
    "Tile",
    "TileCompositeFailure",
    "TileIndex",
    "TileSource",
    "assemble",
    "assemble_with_report",
    "average_color",
    "cell_colors",
    "generate_mosaic",
    "in_memory_library",
    "load_index",
    "make_selector",
    "recency_capacity",
    "render_mosaic",
    "scan_library",
    "squared_distance",
]
