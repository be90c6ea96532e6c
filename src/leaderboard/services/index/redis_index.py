"""Redis sorted-set score index."""

from __future__ import annotations

import math

import redis
import structlog
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from leaderboard.core.config import RedisConfig
from leaderboard.core.errors import IndexConnectionError, IndexUnavailableError

from .base import ScoreIndex

logger = structlog.get_logger()

# KEYS: board, member -> score hash, score -> member count hash, distinct scores.
_UPSERT_LUA = """
local old = redis.call("HGET", KEYS[2], ARGV[1])
redis.call("ZADD", KEYS[1], ARGV[2], ARGV[1])
if old == ARGV[3] then
    return 0
end
if old then
    if redis.call("HINCRBY", KEYS[3], old, -1) <= 0 then
        redis.call("HDEL", KEYS[3], old)
        redis.call("ZREM", KEYS[4], old)
    end
end
redis.call("HSET", KEYS[2], ARGV[1], ARGV[3])
redis.call("HINCRBY", KEYS[3], ARGV[3], 1)
redis.call("ZADD", KEYS[4], ARGV[3], ARGV[3])
return 1
"""

_REMOVE_LUA = """
local removed = redis.call("ZREM", KEYS[1], ARGV[1])
local old = redis.call("HGET", KEYS[2], ARGV[1])
if old then
    redis.call("HDEL", KEYS[2], ARGV[1])
    if redis.call("HINCRBY", KEYS[3], old, -1) <= 0 then
        redis.call("HDEL", KEYS[3], old)
        redis.call("ZREM", KEYS[4], old)
    end
end
return removed
"""


def _bound(value: float) -> float | str:
    """Format a ZCOUNT bound; redis-py renders floats with repr()."""
    if math.isinf(value):
        return "-inf" if value < 0 else "+inf"
    return value


class RedisScoreIndex(ScoreIndex):
    """ScoreIndex over one Redis sorted set.

    Three companion keys sit beside the board: ``{key}:members`` maps each
    member to its score, ``{key}:counts`` maps each score to its member count,
    and ``{key}:scores`` is a sorted set of the distinct scores in use. Writes
    go through Lua scripts so the board and its companions change atomically.

    The redis-py client owns a thread-safe connection pool, so no lock is
    taken around commands.
    """

    def __init__(self, client: redis.Redis, key: str, address: str = "redis") -> None:
        """Initialize the index.

        Args:
            client: redis-py client created with ``decode_responses=True``.
            key: Sorted-set key holding the board.
            address: Address shown in statistics.
        """
        self._client = client
        self._key = key
        self._address = address
        self._keys = [key, f"{key}:members", f"{key}:counts", f"{key}:scores"]
        self._upsert_script = client.register_script(_UPSERT_LUA)
        self._remove_script = client.register_script(_REMOVE_LUA)

    @classmethod
    def connect(cls, config: RedisConfig, key: str) -> RedisScoreIndex:
        """Create a client from config and verify the server answers PING.

        Raises:
            IndexConnectionError: If the server cannot be reached.
        """
        url = config.get_url()
        if url:
            client = redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_timeout=config.socket_timeout,
            )
        else:
            client = redis.Redis(
                host=config.host,
                port=config.port,
                db=config.db,
                password=config.get_password(),
                decode_responses=True,
                socket_timeout=config.socket_timeout,
            )

        @retry(
            stop=stop_after_attempt(config.connect_retries),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
            retry=retry_if_exception_type(redis.ConnectionError),
        )
        def _ping() -> None:
            client.ping()

        try:
            _ping()
        except (RetryError, redis.RedisError) as e:
            client.close()
            cause = e.last_attempt.exception() if isinstance(e, RetryError) else e
            raise IndexConnectionError(config.describe(), str(cause)) from e

        logger.info("redis_connected", address=config.describe(), key=key)
        return cls(client, key, address=config.describe())

    @property
    def key(self) -> str:
        return self._key

    def upsert(self, member: str, sort_key: float, score: int) -> None:
        try:
            self._upsert_script(keys=self._keys, args=[member, sort_key, score])
        except redis.RedisError as e:
            raise IndexUnavailableError("upsert", e) from e

    def get_sort_key(self, member: str) -> float | None:
        try:
            value = self._client.zscore(self._key, member)
        except redis.RedisError as e:
            raise IndexUnavailableError("get_sort_key", e) from e
        return None if value is None else float(value)

    def get_position(self, member: str) -> int | None:
        try:
            return self._client.zrank(self._key, member)
        except redis.RedisError as e:
            raise IndexUnavailableError("get_position", e) from e

    def range_by_position(self, start: int, end: int) -> list[tuple[str, float]]:
        # ZRANGE treats negative indexes as offsets from the tail.
        if start < 0 or end < start:
            return []
        try:
            rows = self._client.zrange(self._key, start, end, withscores=True)
        except redis.RedisError as e:
            raise IndexUnavailableError("range_by_position", e) from e
        return [(member, float(score)) for member, score in rows]

    def count_between(self, low: float, high: float) -> int:
        if high < low:
            return 0
        try:
            return int(self._client.zcount(self._key, _bound(low), _bound(high)))
        except redis.RedisError as e:
            raise IndexUnavailableError("count_between", e) from e

    def count_scores_above(self, score: int) -> int:
        try:
            return int(self._client.zcount(self._keys[3], f"({score}", "+inf"))
        except redis.RedisError as e:
            raise IndexUnavailableError("count_scores_above", e) from e

    def size(self) -> int:
        try:
            return int(self._client.zcard(self._key))
        except redis.RedisError as e:
            raise IndexUnavailableError("size", e) from e

    def remove(self, member: str) -> bool:
        try:
            return bool(self._remove_script(keys=self._keys, args=[member]))
        except redis.RedisError as e:
            raise IndexUnavailableError("remove", e) from e

    def clear(self) -> None:
        try:
            self._client.delete(*self._keys)
        except redis.RedisError as e:
            raise IndexUnavailableError("clear", e) from e

    def describe(self) -> str:
        return f"redis://{self._address}"

    def close(self) -> None:
        """Release the connection pool."""
        self._client.close()
