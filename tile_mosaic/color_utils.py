"""Region averaging and colour distance.

Every average in the package is an integer RGB triple: channel sums over the
qualifying pixels divided by the pixel count, rounded half-up.
"""

from __future__ import annotations

import numpy as np

from tile_mosaic.errors import NoOpaquePixels

Color = tuple[int, int, int]
Region = tuple[int, int, int, int]  # x, y, width, height


def _round_mean(sums: np.ndarray, count: np.ndarray | int) -> np.ndarray:
    """Half-up rounded ``sums / count`` in exact integer arithmetic."""
    return (2 * sums + count) // (2 * count)


def _as_pixels(pixels: np.ndarray) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        msg = f"Expected an (H, W, 3) or (H, W, 4) array, got shape {arr.shape}"
        raise ValueError(msg)
    return arr


def average_color(
    pixels: np.ndarray,
    region: Region | None = None,
    alpha_threshold: int = 128,
    use_alpha: bool = True,
) -> Color:
    """Mean colour of a rectangular region.

    Args:
        pixels: (H, W, 4) RGBA or (H, W, 3) RGB uint8 array.
        region: ``(x, y, width, height)``; the whole frame when omitted.
        alpha_threshold: With *use_alpha*, only pixels whose alpha is
            strictly greater than this value are averaged.
        use_alpha: Filter by alpha. RGB input has no alpha and is
            always averaged in full.

    Returns:
        ``(r, g, b)`` ints in [0, 255].

    Raises:
        NoOpaquePixels: No pixel in the region qualifies.
    """
    arr = _as_pixels(pixels)
    h, w = arr.shape[:2]
    x, y, rw, rh = region if region is not None else (0, 0, w, h)
    if rw <= 0 or rh <= 0 or x < 0 or y < 0 or x + rw > w or y + rh > h:
        msg = f"Region {(x, y, rw, rh)} is empty or outside a {w}x{h} image"
        raise ValueError(msg)

    block = arr[y:y + rh, x:x + rw]
    rgb = block[..., :3].reshape(-1, 3).astype(np.int64)
    if use_alpha and arr.shape[2] == 4:
        rgb = rgb[block[..., 3].reshape(-1) > alpha_threshold]

    count = len(rgb)
    if count == 0:
        msg = f"No pixel with alpha > {alpha_threshold} in region {(x, y, rw, rh)}"
        raise NoOpaquePixels(msg)

    mean = _round_mean(rgb.sum(axis=0), count)
    return int(mean[0]), int(mean[1]), int(mean[2])


def grid_shape(width: int, height: int, tile_size: int) -> tuple[int, int]:
    """``(rows, cols)`` of whole cells; remainder strips are dropped."""
    return height // tile_size, width // tile_size


def _grid_blocks(arr: np.ndarray, tile_size: int) -> tuple[np.ndarray, int, int]:
    rows, cols = grid_shape(arr.shape[1], arr.shape[0], tile_size)
    grid = arr[:rows * tile_size, :cols * tile_size]
    return grid, rows, cols


def cell_colors(pixels: np.ndarray, tile_size: int) -> np.ndarray:
    """Average every grid cell over all of its pixels, alpha ignored.

    Returns:
        (rows, cols, 3) uint8 array of cell colours.
    """
    arr = _as_pixels(pixels)
    grid, rows, cols = _grid_blocks(arr, tile_size)
    blocks = grid[..., :3].astype(np.int64).reshape(rows, tile_size, cols, tile_size, 3)
    sums = blocks.sum(axis=(1, 3))
    return _round_mean(sums, tile_size * tile_size).astype(np.uint8)


def cell_opaque_counts(
    pixels: np.ndarray,
    tile_size: int,
    alpha_threshold: int = 128,
) -> np.ndarray:
    """Per-cell number of pixels with alpha above *alpha_threshold*.

    Returns:
        (rows, cols) int64 array. RGB input counts every pixel as opaque.
    """
    arr = _as_pixels(pixels)
    grid, rows, cols = _grid_blocks(arr, tile_size)
    if arr.shape[2] == 3:
        return np.full((rows, cols), tile_size * tile_size, dtype=np.int64)
    opaque = (grid[..., 3] > alpha_threshold).astype(np.int64)
    return opaque.reshape(rows, tile_size, cols, tile_size).sum(axis=(1, 3))


def squared_distance(a: Color | np.ndarray, b: Color | np.ndarray) -> int:
    """Squared Euclidean RGB distance ``dr² + dg² + db²``."""
    d = np.asarray(a, dtype=np.int64) - np.asarray(b, dtype=np.int64)
    return int(d[0] ** 2 + d[1] ** 2 + d[2] ** 2)
