"""Standard ranking: every player holds a unique position."""

from __future__ import annotations

from leaderboard.ranking.base import BaseLeaderboard


class StandardLeaderboard(BaseLeaderboard):
    """Leaderboard whose ranks are the players' 1-based index positions.

    Equal scores never share a rank; whoever reached the score first is
    placed higher. Ranks always form ``1..population`` with no gaps.
    """

    ranking = "standard"

    def _player_rank(self, player_id: str, sort_key: float) -> int | None:
        position = self.index.get_position(player_id)
        # Removed between the two reads.
        if position is None:
            return None
        return position + 1

    def _window_ranks(self, start: int, rows: list[tuple[str, float]]) -> list[int]:
        return [start + offset + 1 for offset in range(len(rows))]
