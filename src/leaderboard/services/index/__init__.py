from __future__ import annotations

import structlog

from leaderboard.core.config import LeaderboardConfig

from .base import ScoreIndex
from .memory import MemoryScoreIndex, MemoryStore
from .redis_index import RedisScoreIndex

logger = structlog.get_logger()


def create_index(config: LeaderboardConfig, store: MemoryStore | None = None) -> ScoreIndex:
    """Create the score index selected by config.

    Args:
        config: Leaderboard configuration.
        store: Shared in-memory store for the memory backend; lets several
            boards live side by side like keys in one Redis database.

    Returns:
        ScoreIndex bound to ``config.leaderboard_key``.

    Raises:
        IndexConnectionError: If the Redis backend cannot be reached.
    """
    if config.backend == "memory":
        logger.info("using_memory_index", key=config.leaderboard_key)
        return MemoryScoreIndex(config.leaderboard_key, store=store)

    return RedisScoreIndex.connect(config.redis, config.leaderboard_key)


__all__ = [
    "MemoryScoreIndex",
    "MemoryStore",
    "RedisScoreIndex",
    "ScoreIndex",
    "create_index",
]
