"""Dense ranking: tied players share a rank and the next group is one lower."""

from __future__ import annotations

from typing import Any, Literal

from leaderboard.ranking.base import BaseLeaderboard
from leaderboard.ranking.encoding import decode_score
from leaderboard.services.index import ScoreIndex

DensePolicy = Literal["score", "sort_key"]


class DenseLeaderboard(BaseLeaderboard):
    """Leaderboard with dense ranks.

    Two notions of "tied" are supported:

    - ``"score"``: players with the same displayed score share a rank.
      Scores 100, 100, 95, 95, 90, 89 rank 1, 1, 2, 2, 3, 4.
    - ``"sort_key"``: a player's rank is the number of entries whose sort key
      is at most theirs. The key includes the tie-break instant, so equal
      scores reached at different times rank differently (1..6 above). Kept
      for boards that already publish ranks computed this way.

    Window membership and order are the same as for standard ranking; only
    the reported rank numbers differ.
    """

    ranking = "dense"

    def __init__(
        self,
        index: ScoreIndex,
        dense_policy: DensePolicy = "score",
        **kwargs: Any,
    ) -> None:
        """Initialize dense leaderboard.

        Args:
            index: Ordered score index holding this board.
            dense_policy: "score" or "sort_key", see class docstring.
            **kwargs: range_window, tiebreak_epoch and clock, passed to
                BaseLeaderboard.
        """
        super().__init__(index, **kwargs)
        self.dense_policy = dense_policy

    def _player_rank(self, player_id: str, sort_key: float) -> int | None:
        if self.dense_policy == "sort_key":
            return self.index.count_at_most(sort_key)
        return self._score_rank(decode_score(sort_key))

    def _window_ranks(self, start: int, rows: list[tuple[str, float]]) -> list[int]:
        if self.dense_policy == "sort_key":
            return [self.index.count_at_most(sort_key) for _, sort_key in rows]

        scores = [decode_score(sort_key) for _, sort_key in rows]
        rank = 1 if start == 0 else self._score_rank(scores[0])
        ranks = [rank]
        for previous, score in zip(scores, scores[1:], strict=False):
            if score != previous:
                rank += 1
            ranks.append(rank)
        return ranks

    def _score_rank(self, score: int) -> int:
        """Dense rank of ``score``: one plus the number of distinct higher scores."""
        return 1 + self.index.count_scores_above(score)

    def get_statistics(self) -> dict[str, Any] | None:
        stats = super().get_statistics()
        if stats is not None:
            stats["dense_policy"] = self.dense_policy
        return stats
