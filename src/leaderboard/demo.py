"""Console walkthrough of standard and dense ranking."""

from __future__ import annotations

from datetime import datetime, timedelta

from rich.console import Console
from rich.table import Table

from leaderboard.models import RankInfo
from leaderboard.ranking import BaseLeaderboard

STANDARD_UPDATES: list[tuple[str, int]] = [
    ("player-a", 100),
    ("player-b", 200),
    ("player-c", 150),
    ("player-d", 200),  # same score as player-b, reached later
]

DENSE_UPDATES: list[tuple[str, int]] = [
    ("player-a", 100),
    ("player-b", 100),
    ("player-c", 95),
    ("player-d", 95),
    ("player-e", 90),
    ("player-f", 89),
]


def seed(board: BaseLeaderboard, updates: list[tuple[str, int]], start: datetime) -> None:
    """Apply ``updates`` one second apart, beginning at ``start``."""
    for offset, (player_id, points) in enumerate(updates):
        board.update_score(player_id, points, start + timedelta(seconds=offset))


def rank_table(title: str, rows: list[RankInfo] | None) -> Table:
    """Build a rich table of ranked rows."""
    table = Table(title=title)
    table.add_column("Rank", justify="right")
    table.add_column("Player")
    table.add_column("Score", justify="right")
    for row in rows or []:
        table.add_row(str(row.rank), row.player_id, str(row.score))
    return table


def run_demo(
    standard: BaseLeaderboard,
    dense: BaseLeaderboard,
    console: Console,
    start: datetime,
) -> None:
    """Seed both boards with the sample data and print their standings.

    Args:
        standard: Board configured for standard ranking.
        dense: Board configured for dense ranking.
        console: Where to print.
        start: Instant of the first sample update.
    """
    console.print("[bold]1. Standard ranking[/bold]")
    seed(standard, STANDARD_UPDATES, start)
    console.print(rank_table("Top 3 (standard)", standard.get_top_n(3)))

    info = standard.get_player_rank("player-b")
    if info is not None:
        console.print(f"player-b is ranked #{info.rank} with {info.score} points")
    neighbours = standard.get_player_range("player-b", 1)
    console.print(rank_table("player-b and one either side", neighbours))

    console.print("\n[bold]2. Dense ranking[/bold]")
    seed(dense, DENSE_UPDATES, start)
    console.print(rank_table("All players (dense)", dense.get_top_n(len(DENSE_UPDATES))))

    stats = standard.get_statistics()
    if stats is not None:
        console.print(f"\nStatistics: {stats}")

    console.print("\nStandard ranking: equal scores get different ranks; first to reach one wins.")
    console.print("Dense ranking: equal scores share a rank.")
