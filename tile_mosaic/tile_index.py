"""Tile colour index: one representative colour per library tile."""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from tile_mosaic.color_utils import Color, average_color
from tile_mosaic.errors import DecodeError, EmptyIndex, NoOpaquePixels
from tile_mosaic.image_io import downscale, to_rgba_array
from tile_mosaic.library import TileSource, in_memory_library

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 500


@dataclass(frozen=True)
class Tile:
    """An indexed library tile. ``tile_id`` is its position in the index."""

    tile_id: int
    key: str
    collection: str
    color: Color
    source: TileSource = field(repr=False, compare=False)

    def open(self) -> Image.Image:
        """Decode the tile image again (may raise :class:`DecodeError`)."""
        return self.source.open()


class TileIndex:
    """Ordered, read-only collection of tiles with their average colours.

    Build once with :meth:`build` and share the instance between requests;
    nothing mutates it afterwards.
    """

    def __init__(
        self,
        tiles: Sequence[Tile],
        n_failed: int = 0,
        n_transparent: int = 0,
    ) -> None:
        self._tiles = tuple(tiles)
        colors = np.array([t.color for t in self._tiles], dtype=np.int64).reshape(-1, 3)
        colors.setflags(write=False)
        self._colors = colors
        self.n_failed = n_failed
        self.n_transparent = n_transparent

    @classmethod
    def build(
        cls,
        library: Iterable[TileSource],
        analysis_size: int = 30,
        alpha_threshold: int = 128,
    ) -> TileIndex:
        """Average every decodable, non-transparent tile in *library*.

        Each tile is downscaled to *analysis_size* x *analysis_size* before
        averaging over pixels with alpha above *alpha_threshold*. Tiles that
        fail to decode or have no opaque pixel are left out.
        """
        sources = list(library)
        total = len(sources)
        logger.info("Indexing %d candidate tiles ...", total)
        t0 = time.perf_counter()

        tiles: list[Tile] = []
        failed = transparent = 0
        for n, src in enumerate(sources, 1):
            try:
                img = src.open()
                pixels = to_rgba_array(downscale(img, analysis_size))
                color = average_color(pixels, alpha_threshold=alpha_threshold)
            except DecodeError as exc:
                logger.warning("Skipping tile: %s", exc)
                failed += 1
            except NoOpaquePixels:
                logger.debug("Dropping fully transparent tile %s", src.key)
                transparent += 1
            else:
                tiles.append(Tile(len(tiles), src.key, src.collection, color, src))

            if n % _PROGRESS_EVERY == 0:
                logger.info("  Processed %d/%d", n, total)

        logger.info(
            "Loaded %d tile colours  (%d undecodable, %d transparent, %.1f s)",
            len(tiles), failed, transparent, time.perf_counter() - t0,
        )
        return cls(tiles, n_failed=failed, n_transparent=transparent)

    @classmethod
    def from_images(
        cls,
        images: Mapping[str, Image.Image] | Iterable[Image.Image],
        analysis_size: int = 30,
        alpha_threshold: int = 128,
    ) -> TileIndex:
        """Index in-memory Pillow images (see :func:`in_memory_library`)."""
        return cls.build(in_memory_library(images), analysis_size, alpha_threshold)

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return self._tiles

    @property
    def colors(self) -> np.ndarray:
        """(N, 3) int64 read-only matrix, row *i* is tile *i*'s colour."""
        return self._colors

    def __len__(self) -> int:
        return len(self._tiles)

    def __getitem__(self, tile_id: int) -> Tile:
        return self._tiles[tile_id]

    def __iter__(self) -> Iterator[Tile]:
        return iter(self._tiles)

    def collections(self) -> dict[str, int]:
        """Tile count per collection, in first-seen order."""
        return dict(Counter(t.collection for t in self._tiles))

    def require_nonempty(self) -> None:
        if not self._tiles:
            msg = "Tile index is empty - no usable tiles in the library"
            raise EmptyIndex(msg)
