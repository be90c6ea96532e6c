"""Ordered score index boundary used by the ranking engines."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ScoreIndex(ABC):
    """Abstract ordered set of (member, sort_key) pairs for one board.

    Members are kept in ascending sort-key order. Equal keys are ordered by
    member name. Positions are zero-based. Each member also carries its
    integer score, and the index keeps the set of distinct scores in use so
    that ``count_scores_above`` is a single lookup. Implementations raise
    ``IndexUnavailableError`` when the backing store cannot answer.
    """

    @property
    @abstractmethod
    def key(self) -> str:
        """Name of the board this index serves."""

    @abstractmethod
    def upsert(self, member: str, sort_key: float, score: int) -> None:
        """Insert ``member`` or replace its sort key and score.

        The entry and the distinct-score bookkeeping change together.
        """

    @abstractmethod
    def get_sort_key(self, member: str) -> float | None:
        """Return the member's sort key, or None if absent."""

    @abstractmethod
    def get_position(self, member: str) -> int | None:
        """Return the member's zero-based ascending position, or None if absent."""

    @abstractmethod
    def range_by_position(self, start: int, end: int) -> list[tuple[str, float]]:
        """Return (member, sort_key) pairs at positions ``start..end`` inclusive.

        Args:
            start: First position, zero-based.
            end: Last position, inclusive. Positions past the end are ignored.

        Returns:
            Pairs in ascending order; empty when the range is empty.
        """

    @abstractmethod
    def count_between(self, low: float, high: float) -> int:
        """Count members whose sort key lies in ``[low, high]``."""

    def count_at_most(self, threshold: float) -> int:
        """Count members whose sort key is at most ``threshold``."""
        return self.count_between(float("-inf"), threshold)

    @abstractmethod
    def count_scores_above(self, score: int) -> int:
        """Count distinct member scores strictly greater than ``score``."""

    @abstractmethod
    def size(self) -> int:
        """Total number of members."""

    @abstractmethod
    def remove(self, member: str) -> bool:
        """Delete ``member``. Returns True if it was present."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every member of this board."""

    def describe(self) -> str:
        """Short backend description for statistics output."""
        return type(self).__name__

    def close(self) -> None:  # noqa: B027
        """Close any resources. Override if needed."""
