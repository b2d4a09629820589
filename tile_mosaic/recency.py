"""Bounded FIFO of recently placed tiles."""

from __future__ import annotations

from collections import Counter, deque


def recency_capacity(index_size: int, max_recent: int = 50, ratio: int = 10) -> int:
    """Window size for an index of *index_size* tiles.

    ``min(max_recent, index_size // ratio)``, never negative. Libraries with
    fewer than *ratio* tiles get a window of 0, i.e. no anti-repetition.
    """
    return max(0, min(max_recent, index_size // ratio))


class RecencyWindow:
    """Tile ids placed in the last *capacity* cells.

    An id may be pushed while already present (after the random fallback);
    it stays excluded until every copy has been evicted.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            msg = f"capacity must be >= 0, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._queue: deque[int] = deque()
        self._counts: Counter[int] = Counter()

    def push(self, tile_id: int) -> None:
        self._queue.append(tile_id)
        self._counts[tile_id] += 1
        while len(self._queue) > self.capacity:
            old = self._queue.popleft()
            self._counts[old] -= 1
            if not self._counts[old]:
                del self._counts[old]

    def contains(self, tile_id: int) -> bool:
        return tile_id in self._counts

    __contains__ = contains

    def __len__(self) -> int:
        """Number of distinct ids currently excluded."""
        return len(self._counts)

    def ids(self) -> list[int]:
        return list(self._counts)

    def __repr__(self) -> str:
        return f"RecencyWindow(capacity={self.capacity}, recent={list(self._queue)})"
