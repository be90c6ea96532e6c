"""Configuration schemas and loading for the leaderboard."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_LEADERBOARD_KEY = "leaderboard"
DEFAULT_TIEBREAK_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)

PASSWORD_ENV_VAR = "LEADERBOARD_REDIS_PASSWORD"
URL_ENV_VAR = "LEADERBOARD_REDIS_URL"


class RedisConfig(BaseModel):
    """Connection settings for the Redis sorted-set backend.

    Attributes:
        host: Redis host name.
        port: Redis port.
        password: Optional password. Falls back to LEADERBOARD_REDIS_PASSWORD.
        db: Logical database number.
        url: Optional redis:// URL; takes precedence over host/port/db.
        socket_timeout: Per-command timeout in seconds.
        connect_retries: Ping attempts made before giving up at startup.
    """

    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    password: str | None = None
    db: int = Field(default=0, ge=0)
    url: str | None = None
    socket_timeout: float | None = Field(default=5.0, gt=0)
    connect_retries: int = Field(default=3, ge=1)

    def get_password(self) -> str | None:
        """Get password from config or environment."""
        return self.password or os.environ.get(PASSWORD_ENV_VAR) or None

    def get_url(self) -> str | None:
        """Get connection URL from config or environment."""
        return self.url or os.environ.get(URL_ENV_VAR) or None

    def describe(self) -> str:
        """Human-readable address, never including the password."""
        url = self.get_url()
        if url:
            return url.split("@")[-1]
        return f"{self.host}:{self.port}/{self.db}"


class LeaderboardConfig(BaseModel):
    """Complete leaderboard configuration.

    Attributes:
        leaderboard_key: Namespace of the logical board inside the index.
        ranking: "standard" (unique positions) or "dense" (shared ranks).
        dense_policy: How dense mode decides two players are tied:
            - "score": equal displayed score means equal rank.
            - "sort_key": equal encoded sort key (score and tie-break instant).
        range_window: How neighbourhood windows behave near the edges:
            - "clipped": window is cut at rank 1 and not re-centred.
            - "recentered": window slides to keep 2n+1 entries when possible.
        tiebreak_epoch: Origin for the tie-break instant term.
        backend: "redis" or "memory".
    """

    leaderboard_key: str = DEFAULT_LEADERBOARD_KEY
    ranking: Literal["standard", "dense"] = "standard"
    dense_policy: Literal["score", "sort_key"] = "score"
    range_window: Literal["clipped", "recentered"] = "clipped"
    tiebreak_epoch: datetime = DEFAULT_TIEBREAK_EPOCH
    backend: Literal["redis", "memory"] = "redis"
    redis: RedisConfig = Field(default_factory=RedisConfig)

    @field_validator("leaderboard_key", mode="before")
    @classmethod
    def default_empty_key(cls, v: str | None) -> str:
        """Blank keys fall back to the default board."""
        if v is None or not str(v).strip():
            return DEFAULT_LEADERBOARD_KEY
        return str(v)

    @field_validator("tiebreak_epoch")
    @classmethod
    def ensure_aware_epoch(cls, v: datetime) -> datetime:
        """Treat a naive epoch as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def is_dense(self) -> bool:
        return self.ranking == "dense"


def load_config(path: str | Path) -> LeaderboardConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated LeaderboardConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return LeaderboardConfig.model_validate(data)
