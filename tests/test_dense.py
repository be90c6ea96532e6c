"""Tests for dense ranking."""

import random
from datetime import UTC, datetime, timedelta

import pytest

from leaderboard.ranking import DenseLeaderboard, StandardLeaderboard
from leaderboard.services.index import MemoryScoreIndex, MemoryStore

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
NOW = datetime(2025, 6, 2, 8, 30, tzinfo=UTC)

SCORES = [("A", 100), ("B", 100), ("C", 95), ("D", 95), ("E", 90), ("F", 89)]


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def seeded(policy: str) -> DenseLeaderboard:
    board = DenseLeaderboard(
        MemoryStore().board("dense"),
        dense_policy=policy,
        clock=lambda: NOW,
    )
    for offset, (player, score) in enumerate(SCORES):
        board.update_score(player, score, at(offset))
    return board


@pytest.fixture
def by_score():
    """Dense board treating equal displayed scores as ties."""
    return seeded("score")


@pytest.fixture
def by_sort_key():
    """Dense board using the raw sort-key count."""
    return seeded("sort_key")


def ranks(rows):
    return {r.player_id: r.rank for r in rows}


class TestScorePolicy:
    """Tests for dense ranks computed from displayed scores."""

    def test_top_n_shares_ranks(self, by_score):
        """Test equal scores share a rank and the next score is one lower."""
        assert ranks(by_score.get_top_n(6)) == {"A": 1, "B": 1, "C": 2, "D": 2, "E": 3, "F": 4}

    def test_top_n_keeps_tie_break_order(self, by_score):
        """Test rows are still listed first-come within a score."""
        assert [r.player_id for r in by_score.get_top_n(6)] == ["A", "B", "C", "D", "E", "F"]

    @pytest.mark.parametrize(
        ("player", "expected"),
        [("A", 1), ("B", 1), ("C", 2), ("D", 2), ("E", 3), ("F", 4)],
    )
    def test_player_rank(self, by_score, player, expected):
        """Test single lookups match the listing."""
        info = by_score.get_player_rank(player)
        assert info.rank == expected

    def test_range_from_middle(self, by_score):
        """Test a window not starting at rank 1 computes its first rank."""
        rows = by_score.get_player_range("E", 1)
        assert [(r.player_id, r.rank) for r in rows] == [("D", 2), ("E", 3), ("F", 4)]

    def test_range_inside_tie_group(self, by_score):
        """Test a window starting mid-group keeps the group's rank."""
        rows = by_score.get_player_range("D", 0)
        assert [(r.player_id, r.rank, r.score) for r in rows] == [("D", 2, 95)]

    def test_new_score_group(self, by_score):
        """Test reaching an existing score joins that group."""
        by_score.update_score("F", 1, at(10))
        assert by_score.get_player_rank("F").rank == 3
        assert by_score.get_player_rank("E").rank == 3

    def test_negative_increment_worsens_rank(self, by_score):
        """Test a penalty moves a player to a lower group."""
        by_score.update_score("A", -20, at(10))
        info = by_score.get_player_rank("A")
        assert info.score == 80
        assert info.rank == 5
        assert by_score.get_player_rank("B").rank == 1

    def test_statistics_report_policy(self, by_score):
        """Test statistics include ranking mode and dense policy."""
        stats = by_score.get_statistics()
        assert stats["ranking"] == "dense"
        assert stats["dense_policy"] == "score"
        assert stats["total_players"] == 6


class TestSortKeyPolicy:
    """Regression tests for dense ranks counted over raw sort keys.

    The key embeds the tie-break instant, so equal scores reached at
    different times do not share a rank under this policy.
    """

    def test_top_n_gives_distinct_ranks(self, by_sort_key):
        """Test every player gets a different rank."""
        assert [r.rank for r in by_sort_key.get_top_n(6)] == [1, 2, 3, 4, 5, 6]

    def test_player_rank(self, by_sort_key):
        """Test single lookups count keys at or below the player's."""
        assert by_sort_key.get_player_rank("B").rank == 2
        assert by_sort_key.get_player_rank("D").rank == 4

    def test_range_reports_each_member(self, by_sort_key):
        """Test each window row carries its own player id and rank."""
        rows = by_sort_key.get_player_range("C", 1)
        assert [(r.player_id, r.rank) for r in rows] == [("B", 2), ("C", 3), ("D", 4)]

    def test_differs_from_score_policy(self, by_sort_key, by_score):
        """Test the two policies disagree exactly on tied players."""
        assert ranks(by_sort_key.get_top_n(6)) != ranks(by_score.get_top_n(6))


class TestDenseProperties:
    """Property checks comparing dense and standard ranks on one board."""

    @pytest.mark.parametrize("policy", ["score", "sort_key"])
    def test_dense_never_exceeds_standard(self, policy):
        """Test dense ranks are non-decreasing and bounded by standard ranks."""
        rng = random.Random(11)
        store = MemoryStore()
        index = store.board("shared")
        dense = DenseLeaderboard(index, dense_policy=policy)
        standard = StandardLeaderboard(index)

        for step in range(200):
            # Few distinct scores so that ties are common.
            dense.update_score(f"p{rng.randrange(30)}", rng.choice([0, 5, 10]), at(step))

        population = index.size()
        dense_rows = dense.get_top_n(population)
        standard_rows = standard.get_top_n(population)

        assert [r.player_id for r in dense_rows] == [r.player_id for r in standard_rows]
        dense_ranks = [r.rank for r in dense_rows]
        assert dense_ranks == sorted(dense_ranks)
        for d, s in zip(dense_rows, standard_rows, strict=True):
            assert d.rank <= s.rank

    def test_score_policy_matches_distinct_scores(self):
        """Test dense rank equals one plus the number of distinct higher scores."""
        rng = random.Random(3)
        board = DenseLeaderboard(MemoryStore().board("d"))
        for step in range(150):
            board.update_score(f"p{rng.randrange(25)}", rng.randint(-3, 6), at(step))

        rows = board.get_top_n(100)
        distinct = sorted({r.score for r in rows}, reverse=True)
        for row in rows:
            assert row.rank == distinct.index(row.score) + 1
            assert board.get_player_rank(row.player_id).rank == row.rank

        for row in rows:
            for windowed in board.get_player_range(row.player_id, 2):
                assert windowed.rank == distinct.index(windowed.score) + 1


class CountingIndex(MemoryScoreIndex):
    """Memory index that counts read calls."""

    def __init__(self) -> None:
        super().__init__("counting")
        self.calls = 0

    def get_sort_key(self, member):
        self.calls += 1
        return super().get_sort_key(member)

    def get_position(self, member):
        self.calls += 1
        return super().get_position(member)

    def range_by_position(self, start, end):
        self.calls += 1
        return super().range_by_position(start, end)

    def count_between(self, low, high):
        self.calls += 1
        return super().count_between(low, high)

    def count_scores_above(self, score):
        self.calls += 1
        return super().count_scores_above(score)

    def size(self):
        self.calls += 1
        return super().size()


class TestIndexCalls:
    """Tests that dense lookups cost a fixed number of index calls."""

    @pytest.fixture
    def large(self):
        """Dense board where every player holds a different score."""
        index = CountingIndex()
        board = DenseLeaderboard(index)
        for score in range(5000):
            board.update_score(f"p{score}", score, at(score))
        index.calls = 0
        return board, index

    def test_player_rank_near_bottom(self, large):
        """Test ranking the lowest player does not walk the board."""
        board, index = large
        assert board.get_player_rank("p0").rank == 5000
        assert index.calls <= 3

    def test_range_near_bottom(self, large):
        """Test a window far from the top computes its first rank directly."""
        board, index = large
        rows = board.get_player_range("p1", 1)
        assert [(r.player_id, r.rank) for r in rows] == [
            ("p2", 4998),
            ("p1", 4999),
            ("p0", 5000),
        ]
        assert index.calls <= 4
