"""Nearest-colour tile selection with a recency exclusion set.

Both selectors return the tile with the smallest squared RGB distance to the
target among tiles not in the recency window, breaking ties by the lowest
index position. When the window covers the whole index they fall back to a
uniformly random tile drawn from the injected generator.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy.spatial import cKDTree

from tile_mosaic.color_utils import Color
from tile_mosaic.config import MATCHERS
from tile_mosaic.errors import EmptyIndex
from tile_mosaic.recency import RecencyWindow
from tile_mosaic.tile_index import Tile, TileIndex

logger = logging.getLogger(__name__)


class LinearSelector:
    """Brute-force O(N) scan, vectorised over the index colour matrix."""

    def __init__(self, index: TileIndex, rng: np.random.Generator | None = None) -> None:
        self.index = index
        self.rng = rng if rng is not None else np.random.default_rng()

    def _check(self) -> None:
        if len(self.index) == 0:
            msg = "Cannot select from an empty tile index"
            raise EmptyIndex(msg)

    def _fallback(self) -> Tile:
        tile = self.index[int(self.rng.integers(len(self.index)))]
        logger.debug("Recency window covers the index; random tile %s", tile.key)
        return tile

    def select(self, target: Color, recency: RecencyWindow) -> Tile:
        self._check()
        diff = self.index.colors - np.asarray(target, dtype=np.int64)
        dist = np.sum(diff * diff, axis=1).astype(np.float64)
        recent = recency.ids()
        if recent:
            dist[recent] = np.inf
        best = int(np.argmin(dist))  # first minimum -> lowest position wins ties
        if math.isinf(dist[best]):
            return self._fallback()
        return self.index[best]


class KDTreeSelector(LinearSelector):
    """Same selection as :class:`LinearSelector` backed by a k-d tree.

    Queries ``len(recency) + 1`` neighbours so at least one is eligible,
    then gathers every tile at the winning distance to apply the
    index-order tie-break.
    """

    def __init__(self, index: TileIndex, rng: np.random.Generator | None = None) -> None:
        super().__init__(index, rng)
        self._tree = cKDTree(index.colors) if len(index) else None

    def _sq_dist(self, tile_id: int, target: np.ndarray) -> int:
        d = self.index.colors[tile_id] - target
        return int(np.dot(d, d))

    def select(self, target: Color, recency: RecencyWindow) -> Tile:
        self._check()
        t = np.asarray(target, dtype=np.int64)
        k = min(len(self.index), len(recency) + 1)
        _, idx = self._tree.query(t, k=k)
        candidates = [int(i) for i in np.atleast_1d(idx) if int(i) not in recency]
        if not candidates:
            return self._fallback()

        best = min(self._sq_dist(i, t) for i in candidates)
        # Float radius; exact integer distances filter the ball afterwards.
        ball = self._tree.query_ball_point(t, r=math.sqrt(best) + 1e-6)
        ties = [
            int(i) for i in ball
            if int(i) not in recency and self._sq_dist(int(i), t) == best
        ]
        return self.index[min(ties)]


def make_selector(
    index: TileIndex,
    matcher: str = "linear",
    rng: np.random.Generator | None = None,
) -> LinearSelector:
    """Build the selector named by *matcher* ("linear" or "kdtree")."""
    if matcher == "linear":
        return LinearSelector(index, rng)
    if matcher == "kdtree":
        return KDTreeSelector(index, rng)
    msg = f"Unknown matcher '{matcher}'. Choose from: {MATCHERS}"
    raise ValueError(msg)
