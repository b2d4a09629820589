"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

MATCHERS = ("linear", "kdtree")
TRANSPARENT_CELL_POLICIES = ("black", "skip", "error")


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        tile_size:         Side of one grid cell in source-image pixels.
        output_tile_size:  Side of one placed tile in the output image.
        analysis_size:     Tiles are downscaled to this square before averaging.
        alpha_threshold:   A tile pixel counts only if its alpha is above this.
        background:        Fill colour of cells that receive no tile.
        max_recent:        Upper bound of the recency window.
        recent_ratio:      Window capacity is ``index_size // recent_ratio``
                           (capped by *max_recent*).
        matcher:           "linear" (brute force) or "kdtree" (scipy).
        transparent_cells: What to do with a source cell that has no opaque
                           pixel - "black", "skip" or "error".
        seed:              Seed for the exhausted-window fallback (None = random).
        output_format:     Image format for saved files.
        library_dir:       Root folder of the tile library.
        input_dir:         Folder to scan for source images (batch mode).
        output_dir:        Folder for results.
    """

    # Grid
    tile_size: int = 20
    output_tile_size: int = 32

    # Tile analysis
    analysis_size: int = 30
    alpha_threshold: int = 128

    # Assembly
    background: tuple[int, int, int] = (10, 10, 10)  # #0a0a0a
    max_recent: int = 50
    recent_ratio: int = 10
    matcher: str = "linear"  # "linear" | "kdtree"
    transparent_cells: str = "black"  # "black" | "skip" | "error"
    seed: int | None = None

    # Output
    output_format: str = "png"

    # Paths
    library_dir: Path = field(default_factory=lambda: Path("downloads"))
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )

    def validate(self) -> MosaicConfig:
        """Raise ``ValueError`` on out-of-range values; return ``self``."""
        for name in ("tile_size", "output_tile_size", "analysis_size", "recent_ratio"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise ValueError(msg)
        if self.max_recent < 0:
            msg = f"max_recent must be >= 0, got {self.max_recent}"
            raise ValueError(msg)
        if self.matcher not in MATCHERS:
            msg = f"Unknown matcher '{self.matcher}'. Choose from: {MATCHERS}"
            raise ValueError(msg)
        if self.transparent_cells not in TRANSPARENT_CELL_POLICIES:
            msg = (
                f"Unknown transparent_cells policy '{self.transparent_cells}'. "
                f"Choose from: {TRANSPARENT_CELL_POLICIES}"
            )
            raise ValueError(msg)
        return self
