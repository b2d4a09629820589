"""Mosaic assembly: grid the source, match every cell, paste scaled tiles.

Runs as two phases. Phase 1 computes all cell target colours at once (pure,
vectorised). Phase 2 walks the grid row-major, selecting tiles and updating
the recency window strictly in that order.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass

import numpy as np
from PIL import Image

from tile_mosaic.color_utils import Color, cell_colors, cell_opaque_counts, grid_shape
from tile_mosaic.config import TRANSPARENT_CELL_POLICIES
from tile_mosaic.errors import (
    DecodeError,
    ImageTooSmall,
    NoOpaquePixels,
    TileCompositeFailure,
)
from tile_mosaic.image_io import scale_tile, to_rgba_array
from tile_mosaic.recency import RecencyWindow, recency_capacity
from tile_mosaic.selector import LinearSelector, make_selector
from tile_mosaic.tile_index import Tile, TileIndex

logger = logging.getLogger(__name__)

BACKGROUND: Color = (10, 10, 10)
_LOG_EVERY_ROWS = 10
_CACHE_SIZE = 256


@dataclass(frozen=True)
class MosaicReport:
    """Summary of one assembly run."""

    rows: int
    cols: int
    placed: int
    skipped: int
    failures: int
    distinct_tiles: int
    window: int
    elapsed: float

    @property
    def cells(self) -> int:
        return self.rows * self.cols


class _TileCache:
    """Per-run LRU cache of tiles already scaled to the output size.

    Holds at most *maxsize* scaled tiles (``maxsize * size² * 4`` bytes);
    evicted tiles are decoded again on their next use.
    """

    def __init__(self, size: int, maxsize: int = _CACHE_SIZE) -> None:
        self.size = size
        self.maxsize = maxsize
        self._scaled: OrderedDict[int, Image.Image] = OrderedDict()
        self._failed: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._scaled)

    def get(self, tile: Tile) -> Image.Image:
        if tile.tile_id in self._failed:
            raise TileCompositeFailure(tile.key, self._failed[tile.tile_id])
        scaled = self._scaled.get(tile.tile_id)
        if scaled is not None:
            self._scaled.move_to_end(tile.tile_id)
            return scaled
        try:
            scaled = scale_tile(tile.open(), self.size)
        except (DecodeError, OSError, ValueError) as exc:
            self._failed[tile.tile_id] = str(exc)
            raise TileCompositeFailure(tile.key, exc) from exc
        self._scaled[tile.tile_id] = scaled
        if len(self._scaled) > self.maxsize:
            self._scaled.popitem(last=False)
        return scaled


def _source_pixels(source: Image.Image | np.ndarray) -> np.ndarray:
    if isinstance(source, Image.Image):
        return to_rgba_array(source)
    arr = np.asarray(source, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        msg = f"Expected an (H, W, 3) or (H, W, 4) array, got shape {arr.shape}"
        raise ValueError(msg)
    return arr


def assemble_with_report(
    source: Image.Image | np.ndarray,
    tile_size: int,
    output_tile_size: int,
    index: TileIndex,
    *,
    selector: LinearSelector | None = None,
    rng: np.random.Generator | None = None,
    matcher: str = "linear",
    background: Color = BACKGROUND,
    transparent_cells: str = "black",
    max_recent: int = 50,
    recent_ratio: int = 10,
) -> tuple[Image.Image, MosaicReport]:
    """Build a mosaic of *source* from the tiles in *index*.

    Args:
        source: Pillow image or (H, W, 3|4) uint8 array.
        tile_size: Side of one grid cell in source pixels.
        output_tile_size: Side of one placed tile in the output.
        index: Non-empty tile index, shared read-only.
        selector: Selector to use; built from *matcher* and *rng* if omitted.
        rng: Generator for the exhausted-window fallback.
        matcher: "linear" or "kdtree" (ignored when *selector* is given).
        background: Fill for cells that receive no tile.
        transparent_cells: Policy for cells whose pixels all have alpha 0:
            "black" matches against (0, 0, 0), "skip" leaves the background,
            "error" raises :class:`NoOpaquePixels`.
        max_recent: Cap of the recency window.
        recent_ratio: Window is ``len(index) // recent_ratio`` tiles, capped.

    Returns:
        ``(image, report)`` - an RGB image of
        ``cols * output_tile_size`` x ``rows * output_tile_size`` and
        the run summary.

    Raises:
        ValueError: Non-positive sizes or unknown policy.
        EmptyIndex: *index* holds no tiles.
        ImageTooSmall: Source is narrower or shorter than one cell.
    """
    if tile_size <= 0 or output_tile_size <= 0:
        msg = (
            f"tile_size and output_tile_size must be positive, "
            f"got {tile_size} and {output_tile_size}"
        )
        raise ValueError(msg)
    if transparent_cells not in TRANSPARENT_CELL_POLICIES:
        msg = (
            f"Unknown transparent_cells policy '{transparent_cells}'. "
            f"Choose from: {TRANSPARENT_CELL_POLICIES}"
        )
        raise ValueError(msg)
    index.require_nonempty()

    pixels = _source_pixels(source)
    h, w = pixels.shape[:2]
    rows, cols = grid_shape(w, h, tile_size)
    if rows == 0 or cols == 0:
        raise ImageTooSmall(w, h, tile_size)

    if selector is None:
        selector = make_selector(index, matcher, rng)
    recency = RecencyWindow(recency_capacity(len(index), max_recent, recent_ratio))
    out = output_tile_size
    canvas = Image.new("RGB", (cols * out, rows * out), tuple(background))
    cache = _TileCache(out)

    # Phase 1: every cell's target colour
    targets = cell_colors(pixels, tile_size)
    # Any alpha > 0 keeps the cell; its RGB average already ignores alpha
    visible = cell_opaque_counts(pixels, tile_size, alpha_threshold=0)

    logger.info(
        "Generating %dx%d mosaic  (%d tiles, recency window %d) ...",
        cols, rows, len(index), recency.capacity,
    )
    t0 = time.perf_counter()
    placed = skipped = failures = 0
    used: set[int] = set()

    # Phase 2: sequential selection and compositing
    for row in range(rows):
        for col in range(cols):
            if visible[row, col] == 0:
                if transparent_cells == "skip":
                    skipped += 1
                    continue
                if transparent_cells == "error":
                    msg = f"Source cell ({row}, {col}) is fully transparent"
                    raise NoOpaquePixels(msg)
                target: Color = (0, 0, 0)
            else:
                r, g, b = targets[row, col]
                target = (int(r), int(g), int(b))

            tile = selector.select(target, recency)
            recency.push(tile.tile_id)
            used.add(tile.tile_id)

            try:
                scaled = cache.get(tile)
            except TileCompositeFailure as exc:
                logger.warning("%s; cell (%d, %d) left as background", exc, row, col)
                failures += 1
                continue
            canvas.paste(scaled, (col * out, row * out), scaled)
            placed += 1

        if row % _LOG_EVERY_ROWS == 0:
            logger.info("  Row %d/%d", row, rows)

    report = MosaicReport(
        rows=rows,
        cols=cols,
        placed=placed,
        skipped=skipped,
        failures=failures,
        distinct_tiles=len(used),
        window=recency.capacity,
        elapsed=time.perf_counter() - t0,
    )
    logger.info(
        "Mosaic done  | %d/%d cells placed, %d distinct tiles  (%.1f s)",
        placed, report.cells, report.distinct_tiles, report.elapsed,
    )
    return canvas, report


def assemble(
    source: Image.Image | np.ndarray,
    tile_size: int,
    output_tile_size: int,
    index: TileIndex,
    **kwargs,
) -> Image.Image:
    """Like :func:`assemble_with_report`, returning only the image."""
    image, _ = assemble_with_report(source, tile_size, output_tile_size, index, **kwargs)
    return image
