"""Shared leaderboard behaviour: score updates, windows and failure handling."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Literal, Protocol, runtime_checkable

import structlog

from leaderboard.core.config import DEFAULT_TIEBREAK_EPOCH
from leaderboard.core.errors import IndexUnavailableError
from leaderboard.core.locks import KeyedLock
from leaderboard.models import RankInfo
from leaderboard.ranking.encoding import decode_score, encode_sort_key
from leaderboard.services.index import ScoreIndex

logger = structlog.get_logger()

RangeWindow = Literal["clipped", "recentered"]


@runtime_checkable
class LeaderboardService(Protocol):
    """Protocol for leaderboards.

    Updates never raise on backend failure; queries return None instead.
    """

    def update_score(
        self,
        player_id: str,
        increment: int,
        timestamp: datetime | None = None,
    ) -> None:
        """Add ``increment`` to the player's cumulative score.

        Args:
            player_id: Non-empty player identifier.
            increment: Points to add; may be negative.
            timestamp: Update instant used to break ties. Defaults to now.
        """
        ...

    def get_player_rank(self, player_id: str) -> RankInfo | None:
        """Get a player's current rank, or None if unknown or unavailable."""
        ...

    def get_top_n(self, n: int) -> list[RankInfo] | None:
        """Get the ``n`` best players, best first."""
        ...

    def get_player_range(self, player_id: str, n: int) -> list[RankInfo] | None:
        """Get up to ``n`` players either side of ``player_id``, best first."""
        ...


class BaseLeaderboard(ABC):
    """Ranking engine over a ScoreIndex.

    Subclasses decide only how rank numbers are derived. Which members a
    window contains is decided here, in sort-key order, for every mode.
    """

    ranking: str = ""

    def __init__(
        self,
        index: ScoreIndex,
        range_window: RangeWindow = "clipped",
        tiebreak_epoch: datetime = DEFAULT_TIEBREAK_EPOCH,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the leaderboard.

        Args:
            index: Ordered score index holding this board.
            range_window: Neighbourhood window policy near the edges.
            tiebreak_epoch: Start of the tie-break window.
            clock: Returns the current time; defaults to ``datetime.now(UTC)``.
        """
        self.index = index
        self.range_window = range_window
        self.tiebreak_epoch = tiebreak_epoch
        self._clock = clock or (lambda: datetime.now(UTC))
        self._update_locks = KeyedLock()

    @property
    def key(self) -> str:
        return self.index.key

    # ==================== Updates ====================

    def update_score(
        self,
        player_id: str,
        increment: int,
        timestamp: datetime | None = None,
    ) -> None:
        """Add ``increment`` to the player's score and re-rank them.

        A failed read counts the current score as zero. A failed write drops
        the update. Both are logged and neither raises.
        """
        if not player_id:
            msg = "player_id must be a non-empty string"
            raise ValueError(msg)

        instant = timestamp or self._clock()

        with self._update_locks.hold(player_id):
            try:
                current = self.index.get_sort_key(player_id)
            except IndexUnavailableError as e:
                logger.warning(
                    "index_read_failed",
                    operation="update_score",
                    player_id=player_id,
                    error=str(e),
                )
                current = None

            current_score = 0 if current is None else decode_score(current)
            new_score = current_score + increment
            sort_key = encode_sort_key(new_score, instant, self.tiebreak_epoch)

            try:
                self.index.upsert(player_id, sort_key, new_score)
            except IndexUnavailableError as e:
                logger.warning(
                    "index_write_failed",
                    operation="update_score",
                    player_id=player_id,
                    error=str(e),
                )
                return

        logger.debug("score_updated", key=self.key, player_id=player_id, score=new_score)

    # ==================== Queries ====================

    def get_player_rank(self, player_id: str) -> RankInfo | None:
        try:
            sort_key = self.index.get_sort_key(player_id)
            if sort_key is None:
                return None
            rank = self._player_rank(player_id, sort_key)
        except IndexUnavailableError as e:
            self._log_query_failure("get_player_rank", e)
            return None

        if rank is None:
            return None
        return RankInfo(
            player_id=player_id,
            rank=rank,
            score=decode_score(sort_key),
            timestamp=self._clock(),
        )

    def get_top_n(self, n: int) -> list[RankInfo] | None:
        if n <= 0:
            return []
        try:
            return self._ranked_window(0, n - 1)
        except IndexUnavailableError as e:
            self._log_query_failure("get_top_n", e)
            return None

    def get_player_range(self, player_id: str, n: int) -> list[RankInfo] | None:
        if n < 0:
            msg = f"range width must be non-negative, got {n}"
            raise ValueError(msg)
        try:
            position = self.index.get_position(player_id)
            if position is None:
                return None
            start, end = self._window(position, n)
            return self._ranked_window(start, end)
        except IndexUnavailableError as e:
            self._log_query_failure("get_player_range", e)
            return None

    def _window(self, position: int, n: int) -> tuple[int, int]:
        """Positions ``(start, end)`` of the neighbourhood around ``position``."""
        if self.range_window == "clipped":
            return max(0, position - n), position + n

        size = self.index.size()
        length = min(2 * n + 1, max(size, position + 1))
        start = min(max(0, position - n), max(0, size - length))
        return start, start + length - 1

    def _ranked_window(self, start: int, end: int) -> list[RankInfo]:
        rows = self.index.range_by_position(start, end)
        if not rows:
            return []
        now = self._clock()
        ranks = self._window_ranks(start, rows)
        return [
            RankInfo(player_id=member, rank=rank, score=decode_score(sort_key), timestamp=now)
            for (member, sort_key), rank in zip(rows, ranks, strict=True)
        ]

    @abstractmethod
    def _player_rank(self, player_id: str, sort_key: float) -> int | None:
        """Rank of a single present player."""

    @abstractmethod
    def _window_ranks(self, start: int, rows: list[tuple[str, float]]) -> list[int]:
        """Rank numbers for consecutive rows beginning at position ``start``."""

    # ==================== Statistics & administration ====================

    def get_statistics(self) -> dict[str, Any] | None:
        """Board summary, or None if the index is unavailable."""
        try:
            total = self.index.size()
        except IndexUnavailableError as e:
            self._log_query_failure("get_statistics", e)
            return None
        return {
            "total_players": total,
            "leaderboard_key": self.key,
            "ranking": self.ranking,
            "range_window": self.range_window,
            "backend": self.index.describe(),
        }

    def remove_player(self, player_id: str) -> bool:
        """Delete a player from the board. False if absent or unavailable."""
        try:
            removed = self.index.remove(player_id)
        except IndexUnavailableError as e:
            logger.warning("index_write_failed", operation="remove_player", error=str(e))
            return False
        if removed:
            logger.info("player_removed", key=self.key, player_id=player_id)
        return removed

    def reset(self) -> None:
        """Delete every player on this board."""
        try:
            self.index.clear()
        except IndexUnavailableError as e:
            logger.warning("index_write_failed", operation="reset", error=str(e))
            return
        logger.info("leaderboard_reset", key=self.key)

    def close(self) -> None:
        """Release the underlying index."""
        self.index.close()

    def __enter__(self) -> BaseLeaderboard:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _log_query_failure(self, operation: str, error: IndexUnavailableError) -> None:
        logger.warning("index_read_failed", operation=operation, key=self.key, error=str(error))
