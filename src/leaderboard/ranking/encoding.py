"""Sort-key encoding: one float that orders by score, then by who got there first.

A sort key is ``-(score * SCORE_SCALE + tiebreak)``. Ascending key order is
descending score order. ``tiebreak`` is the number of seconds left in a
``TIEBREAK_WINDOW``-second window starting at the tie-break epoch, so among
equal scores the earlier update carries the larger term, the smaller key, and
the better rank.

Scores are exact while ``abs(score) <= MAX_EXACT_SCORE``. Past that, float64
cannot hold both the score and the tie-break term and decoding or tie-break
order may be wrong. Such updates are still written but logged as
``score_precision_exceeded``.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

import structlog

from leaderboard.core.config import DEFAULT_TIEBREAK_EPOCH

logger = structlog.get_logger()

SCORE_SCALE = 1e9
TIEBREAK_WINDOW = 1e9
# Largest score whose key stays within 2**53 even with the largest tie-break term.
MAX_EXACT_SCORE = (2**53 - 10**9) // 10**9

_MAX_ELAPSED = TIEBREAK_WINDOW - 1.0


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant


def tiebreak_term(instant: datetime, epoch: datetime = DEFAULT_TIEBREAK_EPOCH) -> float:
    """Compute the tie-break term for an update instant.

    Args:
        instant: When the update happened. Naive values are taken as UTC.
        epoch: Start of the tie-break window.

    Returns:
        Seconds remaining in the window, in ``[0, TIEBREAK_WINDOW - 1]``.
    """
    elapsed = (_as_utc(instant) - _as_utc(epoch)).total_seconds()
    if elapsed < 0.0 or elapsed > _MAX_ELAPSED:
        logger.warning(
            "tiebreak_instant_clamped",
            instant=instant.isoformat(),
            epoch=epoch.isoformat(),
        )
        elapsed = min(max(elapsed, 0.0), _MAX_ELAPSED)
    return _MAX_ELAPSED - elapsed


def encode_sort_key(
    score: int,
    instant: datetime,
    epoch: datetime = DEFAULT_TIEBREAK_EPOCH,
) -> float:
    """Collapse a cumulative score and its update instant into a sort key.

    Args:
        score: New cumulative score.
        instant: Update instant used to break ties.
        epoch: Start of the tie-break window.

    Returns:
        Sort key; lower keys rank higher.
    """
    if abs(score) > MAX_EXACT_SCORE:
        logger.warning("score_precision_exceeded", score=score, limit=MAX_EXACT_SCORE)
    return -(score * SCORE_SCALE + tiebreak_term(instant, epoch))


def decode_score(sort_key: float) -> int:
    """Recover the cumulative score from a sort key."""
    return math.floor(-sort_key / SCORE_SCALE)


def score_boundary(score: int) -> float:
    """Largest sort key any entry with at least ``score`` points can have.

    ``count_at_most(score_boundary(s))`` is the number of entries scoring
    ``s`` or more.
    """
    return -(score * SCORE_SCALE)
