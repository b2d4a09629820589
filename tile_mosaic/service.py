"""Request-level entry points: bytes in, encoded mosaic out."""

from __future__ import annotations

import logging

import numpy as np

from tile_mosaic.assembler import MosaicReport, assemble_with_report
from tile_mosaic.config import MosaicConfig
from tile_mosaic.image_io import decode_image, encode_image
from tile_mosaic.library import scan_library
from tile_mosaic.tile_index import TileIndex

logger = logging.getLogger(__name__)


def load_index(config: MosaicConfig | None = None) -> TileIndex:
    """Scan ``config.library_dir`` and build the shared tile index."""
    cfg = config or MosaicConfig()
    sources = scan_library(cfg.library_dir, cfg.SUPPORTED_EXTENSIONS)
    logger.info("Found %d images in %s", len(sources), cfg.library_dir)
    return TileIndex.build(sources, cfg.analysis_size, cfg.alpha_threshold)


def render_mosaic(
    source_bytes: bytes,
    tile_size: int,
    output_tile_size: int,
    index: TileIndex,
    *,
    config: MosaicConfig | None = None,
    rng: np.random.Generator | None = None,
    fmt: str | None = None,
) -> tuple[bytes, MosaicReport]:
    """Decode, assemble and encode; also return the run report.

    Raises:
        DecodeError: *source_bytes* is not an image.
        EmptyIndex / ImageTooSmall / ValueError: see :func:`assemble_with_report`.
    """
    cfg = (config or MosaicConfig()).validate()
    if rng is None:
        rng = np.random.default_rng(cfg.seed)

    source = decode_image(source_bytes)
    logger.info(
        "Generating mosaic: source=%dx%d tile=%d output=%d",
        source.width, source.height, tile_size, output_tile_size,
    )
    image, report = assemble_with_report(
        source,
        tile_size,
        output_tile_size,
        index,
        rng=rng,
        matcher=cfg.matcher,
        background=cfg.background,
        transparent_cells=cfg.transparent_cells,
        max_recent=cfg.max_recent,
        recent_ratio=cfg.recent_ratio,
    )
    return encode_image(image, fmt or cfg.output_format), report


def generate_mosaic(
    source_bytes: bytes,
    tile_size: int,
    output_tile_size: int,
    index: TileIndex,
    *,
    config: MosaicConfig | None = None,
    rng: np.random.Generator | None = None,
    fmt: str | None = None,
) -> bytes:
    """Turn encoded source image bytes into encoded mosaic bytes."""
    data, _ = render_mosaic(
        source_bytes, tile_size, output_tile_size, index,
        config=config, rng=rng, fmt=fmt,
    )
    return data
