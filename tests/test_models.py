"""
Unit tests for the data models (Match, StandingsRow, Tournament).
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from league.models import Match, StandingsRow, Tournament, PENDING, SCHEDULED


class TestMatch:
    """Tests for the Match model."""

    def test_match_defaults(self):
        """A new match is pending with no score or audit fields."""
        match = Match(id="t1-1", player1_id="alice", player2_id="bob")
        assert match.status == PENDING
        assert match.score1 is None and match.score2 is None
        assert match.submitted_by is None
        assert match.disputed_by is None

    def test_opponent_of(self):
        match = Match(id="t1-1", player1_id="alice", player2_id="bob")
        assert match.opponent_of("alice") == "bob"
        assert match.opponent_of("bob") == "alice"
        assert match.opponent_of("carol") is None

    def test_copy_is_independent(self):
        """Changing a copy leaves the original untouched."""
        match = Match(id="t1-1", player1_id="alice", player2_id="bob")
        clone = match.copy()
        clone.score1 = 3
        assert match.score1 is None
        assert clone != match

    def test_dict_roundtrip(self):
        match = Match(id="t1-1", player1_id="alice", player2_id="bob", score1=2, score2=1,
                      status="submitted", submitted_by="alice", submitted_at="2026-01-01T10:00:00")
        assert Match.from_dict(match.to_dict()) == match

    def test_match_repr(self):
        repr_str = repr(Match(id="t1-1", player1_id="alice", player2_id="bob"))
        assert "alice" in repr_str
        assert "pending" in repr_str


class TestStandingsRow:
    """Tests for the StandingsRow model."""

    def test_row_is_zero_initialized(self):
        row = StandingsRow(player_id="alice")
        assert row.to_dict() == {
            'player_id': 'alice', 'played': 0, 'won': 0, 'lost': 0, 'draw': 0, 'points': 0,
            'goals_scored': 0, 'goals_against': 0, 'goal_difference': 0,
        }

    def test_row_repr(self):
        repr_str = repr(StandingsRow(player_id="alice", points=3))
        assert "alice" in repr_str
        assert "points=3" in repr_str


class TestTournament:
    """Tests for the Tournament aggregate."""

    @pytest.fixture
    def tournament(self):
        return Tournament(
            id="t1", name="Cup", owner_team_id="lions", participant_ids=["alice", "bob"],
            matches=[Match(id="t1-1", player1_id="alice", player2_id="bob")],
            standings=[StandingsRow("alice"), StandingsRow("bob")],
        )

    def test_defaults(self, tournament):
        assert tournament.status == SCHEDULED
        assert tournament.version == 1

    def test_lookup_helpers(self, tournament):
        assert tournament.get_match("t1-1").player2_id == "bob"
        assert tournament.get_match("t1-9") is None
        assert tournament.get_row("bob").player_id == "bob"
        assert tournament.get_row("zed") is None

    def test_dict_roundtrip_keeps_nested_records(self, tournament):
        restored = Tournament.from_dict(tournament.to_dict())
        assert restored.to_dict() == tournament.to_dict()
        assert isinstance(restored.matches[0], Match)
        assert isinstance(restored.standings[0], StandingsRow)

    def test_copy_does_not_share_rows(self, tournament):
        clone = tournament.copy()
        clone.standings[0].points = 3
        assert tournament.standings[0].points == 0
