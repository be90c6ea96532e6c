"""In-process ordered score index for tests, demos and single-process use."""

from __future__ import annotations

import bisect
import threading
from operator import itemgetter

from .base import ScoreIndex

_sort_key = itemgetter(0)


class _Board:
    """Sorted (sort_key, member) list with a member -> sort_key lookup.

    ``distinct`` holds every score in use, ascending, and ``counts`` how many
    members hold each one.
    """

    def __init__(self) -> None:
        self.entries: list[tuple[float, str]] = []
        self.keys: dict[str, float] = {}
        self.scores: dict[str, int] = {}
        self.counts: dict[int, int] = {}
        self.distinct: list[int] = []

    def discard(self, member: str) -> bool:
        old = self.keys.pop(member, None)
        if old is None:
            return False
        del self.entries[bisect.bisect_left(self.entries, (old, member))]
        self._release(self.scores.pop(member))
        return True

    def insert(self, member: str, sort_key: float, score: int) -> None:
        self.discard(member)
        bisect.insort(self.entries, (sort_key, member))
        self.keys[member] = sort_key
        self.scores[member] = score
        if score not in self.counts:
            self.counts[score] = 0
            bisect.insort(self.distinct, score)
        self.counts[score] += 1

    def scores_above(self, score: int) -> int:
        return len(self.distinct) - bisect.bisect_right(self.distinct, score)

    def _release(self, score: int) -> None:
        self.counts[score] -= 1
        if not self.counts[score]:
            del self.counts[score]
            del self.distinct[bisect.bisect_left(self.distinct, score)]


class MemoryStore:
    """Holds any number of boards, the in-memory analogue of one Redis database."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._boards: dict[str, _Board] = {}

    def board(self, key: str) -> MemoryScoreIndex:
        """Get an index bound to board ``key``, creating it on first use."""
        return MemoryScoreIndex(key, store=self)

    def _get(self, key: str) -> _Board:
        board = self._boards.get(key)
        if board is None:
            board = self._boards[key] = _Board()
        return board

    @property
    def board_keys(self) -> list[str]:
        with self._lock:
            return sorted(k for k, b in self._boards.items() if b.entries)


class MemoryScoreIndex(ScoreIndex):
    """ScoreIndex over a MemoryStore.

    Every operation runs under the store lock. Nothing here blocks on I/O,
    so holding it for the whole call is fine.
    """

    def __init__(self, key: str, store: MemoryStore | None = None) -> None:
        """Initialize the index.

        Args:
            key: Board name.
            store: Shared store; a private one is created if omitted.
        """
        self._key = key
        self._store = store or MemoryStore()

    @property
    def key(self) -> str:
        return self._key

    @property
    def store(self) -> MemoryStore:
        return self._store

    def upsert(self, member: str, sort_key: float, score: int) -> None:
        with self._store._lock:
            self._store._get(self._key).insert(member, sort_key, score)

    def get_sort_key(self, member: str) -> float | None:
        with self._store._lock:
            return self._store._get(self._key).keys.get(member)

    def get_position(self, member: str) -> int | None:
        with self._store._lock:
            board = self._store._get(self._key)
            sort_key = board.keys.get(member)
            if sort_key is None:
                return None
            return bisect.bisect_left(board.entries, (sort_key, member))

    def range_by_position(self, start: int, end: int) -> list[tuple[str, float]]:
        if start < 0 or end < start:
            return []
        with self._store._lock:
            window = self._store._get(self._key).entries[start : end + 1]
        return [(member, sort_key) for sort_key, member in window]

    def count_between(self, low: float, high: float) -> int:
        if high < low:
            return 0
        with self._store._lock:
            entries = self._store._get(self._key).entries
            lo = bisect.bisect_left(entries, low, key=_sort_key)
            hi = bisect.bisect_right(entries, high, key=_sort_key)
        return hi - lo

    def count_scores_above(self, score: int) -> int:
        with self._store._lock:
            return self._store._get(self._key).scores_above(score)

    def size(self) -> int:
        with self._store._lock:
            return len(self._store._get(self._key).entries)

    def remove(self, member: str) -> bool:
        with self._store._lock:
            return self._store._get(self._key).discard(member)

    def clear(self) -> None:
        with self._store._lock:
            self._store._boards.pop(self._key, None)

    def describe(self) -> str:
        return "memory"
