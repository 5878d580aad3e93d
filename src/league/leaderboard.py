"""
Leaderboard ranking.

Ranking: points (desc) -> goal difference (desc) -> original standings order.
"""


def rank(rows):
    """Return a new list of rows in leaderboard order.

    ``sorted`` is stable, so rows with equal points and goal difference keep their
    relative input order. The input sequence is left untouched.
    """
    return sorted(rows, key=lambda row: (-row.points, -row.goal_difference))


def leaderboard_table(rows):
    """Ranked rows as dicts with a 1-based ``position``, ready for JSON."""
    table = []
    for position, row in enumerate(rank(rows), start=1):
        entry = row.to_dict()
        entry['position'] = position
        table.append(entry)
    return table
