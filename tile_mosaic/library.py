"""Tile library providers.

A library is any iterable of :class:`TileSource`. Each source knows how to
(re)open its image, so the index can keep a reference to the tile instead
of holding every decoded image in memory.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from PIL import Image

from tile_mosaic.image_io import open_image


@dataclass(frozen=True)
class TileSource:
    """One candidate tile image.

    Attributes:
        key:        Stable identifier (file path for directory libraries).
        collection: Name of the group the tile belongs to ("" if none).
        loader:     Zero-argument callable returning the decoded image.
    """

    key: str
    collection: str
    loader: Callable[[], Image.Image]

    def open(self) -> Image.Image:
        return self.loader()


def _collection_name(root: Path, path: Path) -> str:
    parent = path.parent.relative_to(root)
    return "" if parent == Path(".") else parent.as_posix()


def scan_library(root: str | Path, extensions: Iterable[str]) -> list[TileSource]:
    """Every image file below *root* whose suffix is in *extensions*.

    Sub-folders become collections. The result is sorted by path so index
    order is stable between runs.
    """
    root = Path(root)
    if not root.is_dir():
        return []
    exts = {e.lower() for e in extensions}
    files = sorted(
        f for f in root.rglob("*")
        if f.is_file() and f.suffix.lower() in exts
    )
    return [
        TileSource(str(f), _collection_name(root, f), partial(open_image, f))
        for f in files
    ]


def in_memory_library(
    images: Mapping[str, Image.Image] | Iterable[Image.Image],
    collection: str = "",
) -> list[TileSource]:
    """Wrap already-decoded images as tile sources.

    A mapping keeps its keys; a plain iterable is keyed ``tile-0``, ``tile-1`` ...
    """
    items = images.items() if isinstance(images, Mapping) else (
        (f"tile-{i}", img) for i, img in enumerate(images)
    )
    return [
        TileSource(key, collection, img.copy)
        for key, img in items
    ]
