PENDING = 'pending'
SUBMITTED = 'submitted'
COMPLETED = 'completed'
MATCH_STATUSES = (PENDING, SUBMITTED, COMPLETED)

SCHEDULED = 'scheduled'
ACTIVE = 'active'
FINISHED = 'completed'
TOURNAMENT_STATUSES = (SCHEDULED, ACTIVE, FINISHED)


class Match:
    def __init__(self, id, player1_id, player2_id, score1=None, score2=None, status=PENDING,
                 submitted_by=None, submitted_at=None, approved_by=None, approved_at=None,
                 disputed_by=None, dispute_reason=None):
        self.id = id
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.score1 = score1
        self.score2 = score2
        self.status = status
        self.submitted_by = submitted_by
        self.submitted_at = submitted_at
        self.approved_by = approved_by
        self.approved_at = approved_at
        self.disputed_by = disputed_by
        self.dispute_reason = dispute_reason

    @property
    def players(self):
        return (self.player1_id, self.player2_id)

    def opponent_of(self, player_id):
        """Return the other participant, or None if player_id is not in this match."""
        if player_id == self.player1_id:
            return self.player2_id
        if player_id == self.player2_id:
            return self.player1_id
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'player1_id': self.player1_id,
            'player2_id': self.player2_id,
            'score1': self.score1,
            'score2': self.score2,
            'status': self.status,
            'submitted_by': self.submitted_by,
            'submitted_at': self.submitted_at,
            'approved_by': self.approved_by,
            'approved_at': self.approved_at,
            'disputed_by': self.disputed_by,
            'dispute_reason': self.dispute_reason,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(**data)

    def copy(self):
        return Match.from_dict(self.to_dict())

    def __eq__(self, other):
        return isinstance(other, Match) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Match(id={self.id}, {self.player1_id} vs {self.player2_id}, "
                f"score={self.score1}-{self.score2}, status={self.status})")


class StandingsRow:
    def __init__(self, player_id, played=0, won=0, lost=0, draw=0, points=0,
                 goals_scored=0, goals_against=0, goal_difference=0):
        self.player_id = player_id
        self.played = played
        self.won = won
        self.lost = lost
        self.draw = draw
        self.points = points
        self.goals_scored = goals_scored
        self.goals_against = goals_against
        self.goal_difference = goal_difference

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'played': self.played,
            'won': self.won,
            'lost': self.lost,
            'draw': self.draw,
            'points': self.points,
            'goals_scored': self.goals_scored,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(**data)

    def copy(self):
        return StandingsRow.from_dict(self.to_dict())

    def __eq__(self, other):
        return isinstance(other, StandingsRow) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"StandingsRow(player_id={self.player_id}, played={self.played}, "
                f"points={self.points}, goal_difference={self.goal_difference})")


class Tournament:
    """A round-robin tournament aggregate: its matches and one standings row per participant.

    ``version`` is the optimistic-concurrency revision; the repository bumps it on every
    commit and rejects commits made against a stale value.
    """

    def __init__(self, id, name, owner_team_id, participant_ids, matches=None, standings=None,
                 status=SCHEDULED, start_date=None, end_date=None, created_by=None,
                 created_at=None, version=1):
        self.id = id
        self.name = name
        self.owner_team_id = owner_team_id
        self.participant_ids = list(participant_ids)
        self.matches = matches if matches else []
        self.standings = standings if standings else []
        self.status = status
        self.start_date = start_date
        self.end_date = end_date
        self.created_by = created_by
        self.created_at = created_at
        self.version = version

    def get_match(self, match_id):
        return next((m for m in self.matches if m.id == match_id), None)

    def get_row(self, player_id):
        return next((r for r in self.standings if r.player_id == player_id), None)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'owner_team_id': self.owner_team_id,
            'participant_ids': list(self.participant_ids),
            'status': self.status,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'created_by': self.created_by,
            'created_at': self.created_at,
            'version': self.version,
            'matches': [m.to_dict() for m in self.matches],
            'standings': [r.to_dict() for r in self.standings],
        }

    @classmethod
    def from_dict(cls, data):
        data = dict(data)
        matches = [Match.from_dict(m) for m in data.pop('matches', None) or []]
        standings = [StandingsRow.from_dict(r) for r in data.pop('standings', None) or []]
        return cls(matches=matches, standings=standings, **data)

    def copy(self):
        return Tournament.from_dict(self.to_dict())

    def __repr__(self):
        return (f"Tournament(id={self.id}, name={self.name}, participants={len(self.participant_ids)}, "
                f"status={self.status}, version={self.version})")
