"""Tests for sort-key encoding and decoding."""

from datetime import UTC, datetime, timedelta

import pytest
import structlog
from structlog.testing import capture_logs

from leaderboard.ranking import encoding
from leaderboard.ranking.encoding import (
    MAX_EXACT_SCORE,
    SCORE_SCALE,
    TIEBREAK_WINDOW,
    decode_score,
    encode_sort_key,
    score_boundary,
    tiebreak_term,
)

EPOCH = datetime(2024, 1, 1, tzinfo=UTC)
T0 = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def captured(monkeypatch):
    """Structlog events emitted by the encoding module."""
    with capture_logs() as logs:
        monkeypatch.setattr(encoding, "logger", structlog.get_logger())
        yield logs


class TestDecodeScore:
    """Tests for recovering scores from sort keys."""

    @pytest.mark.parametrize("score", [0, 1, 99, 100, 12_345, 1_000_000, MAX_EXACT_SCORE])
    def test_round_trip_non_negative(self, score):
        """Test decoding returns the encoded score exactly."""
        assert decode_score(encode_sort_key(score, T0, EPOCH)) == score

    @pytest.mark.parametrize("score", [-1, -5, -1000])
    def test_round_trip_negative(self, score):
        """Test floor decoding keeps negative scores exact."""
        assert decode_score(encode_sort_key(score, T0, EPOCH)) == score

    def test_round_trip_sub_second_instant(self):
        """Test fractional seconds do not leak into the score."""
        instant = T0 + timedelta(microseconds=999_999)
        assert decode_score(encode_sort_key(42, instant, EPOCH)) == 42

    def test_round_trip_at_epoch(self):
        """Test the largest tie-break term still decodes to the same score."""
        assert decode_score(encode_sort_key(7, EPOCH, EPOCH)) == 7

    @pytest.mark.parametrize("score", [MAX_EXACT_SCORE, -MAX_EXACT_SCORE, MAX_EXACT_SCORE - 1])
    def test_round_trip_at_limit_with_largest_term(self, score):
        """Test scores at the exact limit survive the largest tie-break term."""
        assert decode_score(encode_sort_key(score, EPOCH, EPOCH)) == score

    def test_limit_value(self):
        """Test the limit leaves room for a full tie-break term below 2**53."""
        assert MAX_EXACT_SCORE == 9_007_198
        assert MAX_EXACT_SCORE * 10**9 + (10**9 - 1) <= 2**53
        assert (MAX_EXACT_SCORE + 1) * 10**9 + (10**9 - 1) > 2**53


class TestOrdering:
    """Tests for the order imposed by sort keys."""

    def test_higher_score_sorts_first(self):
        """Test a higher score gets a lower key regardless of timing."""
        early_low = encode_sort_key(100, T0, EPOCH)
        late_high = encode_sort_key(101, T0 + timedelta(days=30), EPOCH)
        assert late_high < early_low

    def test_earlier_instant_wins_tie(self):
        """Test the first player to reach a score sorts ahead of later ones."""
        first = encode_sort_key(200, T0, EPOCH)
        second = encode_sort_key(200, T0 + timedelta(seconds=1), EPOCH)
        assert first < second

    def test_sub_second_tie_break(self):
        """Test updates a millisecond apart are still ordered."""
        first = encode_sort_key(200, T0, EPOCH)
        second = encode_sort_key(200, T0 + timedelta(milliseconds=1), EPOCH)
        assert first < second

    def test_naive_instant_treated_as_utc(self):
        """Test naive datetimes encode like their UTC equivalent."""
        naive = T0.replace(tzinfo=None)
        assert encode_sort_key(5, naive, EPOCH) == encode_sort_key(5, T0, EPOCH)


class TestTiebreakTerm:
    """Tests for the tie-break term range."""

    def test_term_within_window(self):
        """Test the term stays below one score unit."""
        term = tiebreak_term(T0, EPOCH)
        assert 0.0 <= term < TIEBREAK_WINDOW

    def test_instant_before_epoch_is_clamped(self):
        """Test instants before the epoch get the largest term."""
        before = EPOCH - timedelta(days=1)
        assert tiebreak_term(before, EPOCH) == tiebreak_term(EPOCH, EPOCH)
        assert tiebreak_term(before, EPOCH) == TIEBREAK_WINDOW - 1.0

    def test_instant_after_window_is_clamped(self):
        """Test instants past the window get a zero term."""
        after = EPOCH + timedelta(seconds=TIEBREAK_WINDOW + 10)
        assert tiebreak_term(after, EPOCH) == 0.0


class TestScoreBoundary:
    """Tests for the per-score key boundary."""

    def test_boundary_separates_scores(self):
        """Test every key for a score is at most its boundary and above the next."""
        latest = EPOCH + timedelta(seconds=TIEBREAK_WINDOW - 1)
        for instant in (EPOCH, T0, latest):
            key = encode_sort_key(50, instant, EPOCH)
            assert key <= score_boundary(50)
            assert key > score_boundary(51)

    def test_boundary_value(self):
        """Test boundary is the negated scaled score."""
        assert score_boundary(3) == -3 * SCORE_SCALE


class TestWarnings:
    """Tests for the warnings logged while encoding."""

    def test_precision_exceeded(self, captured):
        """Test a score past the exact limit is logged."""
        encode_sort_key(MAX_EXACT_SCORE + 1, T0, EPOCH)
        events = [e for e in captured if e["event"] == "score_precision_exceeded"]
        assert len(events) == 1
        assert events[0]["log_level"] == "warning"
        assert events[0]["score"] == MAX_EXACT_SCORE + 1
        assert events[0]["limit"] == MAX_EXACT_SCORE

    def test_negative_precision_exceeded(self, captured):
        """Test the limit applies to large penalties too."""
        encode_sort_key(-(MAX_EXACT_SCORE + 1), T0, EPOCH)
        assert [e["event"] for e in captured] == ["score_precision_exceeded"]

    def test_instant_before_epoch_logged(self, captured):
        """Test clamping an early instant is logged."""
        tiebreak_term(EPOCH - timedelta(seconds=1), EPOCH)
        assert [e["event"] for e in captured] == ["tiebreak_instant_clamped"]
        assert captured[0]["log_level"] == "warning"

    def test_instant_after_window_logged(self, captured):
        """Test clamping a late instant is logged."""
        tiebreak_term(EPOCH + timedelta(seconds=TIEBREAK_WINDOW), EPOCH)
        assert [e["event"] for e in captured] == ["tiebreak_instant_clamped"]

    def test_in_range_logs_nothing(self, captured):
        """Test a score at the limit inside the window is silent."""
        encode_sort_key(MAX_EXACT_SCORE, T0, EPOCH)
        encode_sort_key(-MAX_EXACT_SCORE, EPOCH, EPOCH)
        assert captured == []
