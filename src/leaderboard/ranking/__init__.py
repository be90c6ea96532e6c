"""Ranking module for the leaderboard.

Provides the sort-key encoding and the standard and dense ranking engines
built on top of an ordered score index.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from leaderboard.ranking.base import BaseLeaderboard, LeaderboardService
from leaderboard.ranking.dense import DenseLeaderboard
from leaderboard.ranking.encoding import (
    MAX_EXACT_SCORE,
    SCORE_SCALE,
    decode_score,
    encode_sort_key,
    score_boundary,
)
from leaderboard.ranking.standard import StandardLeaderboard
from leaderboard.services.index import create_index

if TYPE_CHECKING:
    from leaderboard.core.config import LeaderboardConfig
    from leaderboard.services.index import MemoryStore, ScoreIndex


def create_leaderboard(
    config: LeaderboardConfig,
    index: ScoreIndex | None = None,
    store: MemoryStore | None = None,
) -> BaseLeaderboard:
    """Create a leaderboard based on config.

    Args:
        config: Leaderboard configuration.
        index: Pre-built index; created from config when omitted.
        store: Shared in-memory store, used only by the memory backend.

    Returns:
        Configured leaderboard.

    Raises:
        IndexConnectionError: If the Redis backend cannot be reached.
    """
    if index is None:
        index = create_index(config, store=store)

    if config.ranking == "dense":
        return DenseLeaderboard(
            index,
            dense_policy=config.dense_policy,
            range_window=config.range_window,
            tiebreak_epoch=config.tiebreak_epoch,
        )
    # Default to standard
    return StandardLeaderboard(
        index,
        range_window=config.range_window,
        tiebreak_epoch=config.tiebreak_epoch,
    )


__all__ = [
    "MAX_EXACT_SCORE",
    "SCORE_SCALE",
    "BaseLeaderboard",
    "DenseLeaderboard",
    "LeaderboardService",
    "StandardLeaderboard",
    "create_leaderboard",
    "decode_score",
    "encode_sort_key",
    "score_boundary",
]
