"""
Unit tests for standings aggregation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from league.errors import InternalError
from league.models import Match, StandingsRow, COMPLETED, SUBMITTED
from league.standings import apply_result, match_outcome


def _completed(score1, score2, p1="alice", p2="bob"):
    return Match(id="t1-1", player1_id=p1, player2_id=p2, score1=score1, score2=score2,
                 status=COMPLETED, submitted_by=p1, approved_by=p2)


@pytest.fixture
def table():
    return [StandingsRow("alice"), StandingsRow("bob"), StandingsRow("carol")]


class TestMatchOutcome:
    """Tests for points per result."""

    def test_home_win(self):
        assert match_outcome(3, 1) == (3, 0)

    def test_away_win(self):
        assert match_outcome(0, 2) == (0, 3)

    def test_draw(self):
        assert match_outcome(2, 2) == (1, 1)


class TestApplyResult:
    """Tests for apply_result."""

    def test_win_updates_both_rows(self, table):
        winner, loser = apply_result(table, _completed(3, 1))
        assert winner.to_dict() == {
            'player_id': 'alice', 'played': 1, 'won': 1, 'lost': 0, 'draw': 0, 'points': 3,
            'goals_scored': 3, 'goals_against': 1, 'goal_difference': 2,
        }
        assert loser.to_dict() == {
            'player_id': 'bob', 'played': 1, 'won': 0, 'lost': 1, 'draw': 0, 'points': 0,
            'goals_scored': 1, 'goals_against': 3, 'goal_difference': -2,
        }

    def test_away_win(self, table):
        row1, row2 = apply_result(table, _completed(0, 4))
        assert (row1.lost, row1.points, row1.goal_difference) == (1, 0, -4)
        assert (row2.won, row2.points, row2.goal_difference) == (1, 3, 4)

    def test_draw(self, table):
        row1, row2 = apply_result(table, _completed(2, 2))
        for row in (row1, row2):
            assert (row.played, row.draw, row.won, row.lost, row.points) == (1, 1, 0, 0, 1)
            assert row.goal_difference == 0

    def test_input_table_is_untouched(self, table):
        apply_result(table, _completed(3, 1))
        assert all(row.played == 0 for row in table)

    def test_accumulates_on_existing_rows(self):
        table = [StandingsRow("alice", played=1, won=1, points=3, goals_scored=2, goals_against=0,
                              goal_difference=2),
                 StandingsRow("bob")]
        row1, _ = apply_result(table, _completed(1, 1))
        assert (row1.played, row1.points, row1.goals_scored, row1.goals_against) == (2, 4, 3, 1)
        assert row1.goal_difference == 2

    def test_wins_match_losses(self, table):
        """Every win has exactly one matching loss."""
        rows = apply_result(table, _completed(5, 0))
        assert sum(r.won for r in rows) == sum(r.lost for r in rows)

    def test_rejects_match_that_is_not_completed(self, table):
        match = _completed(3, 1)
        match.status = SUBMITTED
        with pytest.raises(InternalError):
            apply_result(table, match)

    def test_rejects_missing_score(self, table):
        with pytest.raises(InternalError):
            apply_result(table, _completed(None, 1))

    def test_rejects_unknown_player(self, table):
        with pytest.raises(InternalError, match="zed"):
            apply_result(table, _completed(1, 0, p2="zed"))
