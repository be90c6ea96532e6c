"""Leaderboard.

Rank players by cumulative score on an ordered score index (Redis sorted
sets or in-memory), with standard or dense ranking and first-come tie-breaks.
"""

from leaderboard.models import RankInfo
from leaderboard.ranking import (
    DenseLeaderboard,
    LeaderboardService,
    StandardLeaderboard,
    create_leaderboard,
)

__version__ = "0.1.0"
__all__ = [
    "DenseLeaderboard",
    "LeaderboardService",
    "RankInfo",
    "StandardLeaderboard",
    "__version__",
    "create_leaderboard",
]
