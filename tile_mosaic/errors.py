"""Exception hierarchy shared by the index, selector and assembler."""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for every error raised by :mod:`tile_mosaic`."""


class DecodeError(MosaicError):
    """Image bytes or file could not be decoded."""


class NoOpaquePixels(MosaicError):
    """A region contains no pixel above the alpha threshold."""


class EmptyIndex(MosaicError):
    """The tile index holds no usable tiles."""


class ImageTooSmall(MosaicError, ValueError):
    """Source image is smaller than one tile in width or height."""

    def __init__(self, width: int, height: int, tile_size: int) -> None:
        self.width = width
        self.height = height
        self.tile_size = tile_size
        super().__init__(
            f"Source image {width}x{height} is smaller than one "
            f"{tile_size}x{tile_size} tile",
        )


class TileCompositeFailure(MosaicError):
    """A library tile could not be decoded or scaled while compositing."""

    def __init__(self, key: str, reason: BaseException | str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Could not composite tile {key}: {reason}")
