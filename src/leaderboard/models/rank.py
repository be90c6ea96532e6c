from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class RankInfo(BaseModel):
    """A player's position on a board at the moment it was queried."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    rank: int = Field(ge=1)
    score: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
