"""
Standings aggregation for completed matches.

Only the approve transition calls ``apply_result``; it is never replayed, because a
completed match cannot be completed again.
"""
from league.errors import InternalError
from league.models import COMPLETED

POINTS_WIN = 3
POINTS_DRAW = 1
POINTS_LOSS = 0


def match_outcome(score1, score2):
    """Return (player1_points, player2_points) for a final score."""
    if score1 > score2:
        return POINTS_WIN, POINTS_LOSS
    if score2 > score1:
        return POINTS_LOSS, POINTS_WIN
    return POINTS_DRAW, POINTS_DRAW


def _credit(row, goals_for, goals_against, points):
    updated = row.copy()
    updated.played += 1
    updated.goals_scored += goals_for
    updated.goals_against += goals_against
    updated.goal_difference = updated.goals_scored - updated.goals_against
    if goals_for > goals_against:
        updated.won += 1
    elif goals_for < goals_against:
        updated.lost += 1
    else:
        updated.draw += 1
    updated.points += points
    return updated


def apply_result(standings, match):
    """Apply a completed match to its two players' rows.

    Returns the two updated rows (player1 first) as new objects; ``standings`` is not
    modified. Raises InternalError when the match or the table is inconsistent.
    """
    if match.status != COMPLETED:
        raise InternalError(f'Match {match.id} is {match.status}; only completed matches count')
    if match.score1 is None or match.score2 is None:
        raise InternalError(f'Completed match {match.id} has no score')

    rows = {row.player_id: row for row in standings}
    missing = [p for p in match.players if p not in rows]
    if missing:
        raise InternalError(f"No standings row for {', '.join(missing)}")

    points1, points2 = match_outcome(match.score1, match.score2)
    row1 = _credit(rows[match.player1_id], match.score1, match.score2, points1)
    row2 = _credit(rows[match.player2_id], match.score2, match.score1, points2)
    return [row1, row2]
