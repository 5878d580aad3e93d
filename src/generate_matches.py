"""
Print the round-robin fixture list for every team in a roster file.

Usage:
    python src/generate_matches.py [teams.yaml] [--team TEAM]
"""
import argparse
import os
import sys
from league.errors import LeagueError
from league.round_robin import generate_round_robin_pairs
from league.teams import load_teams


def generate_team_fixtures(teams, team_filter=None):
    """Return {team_id: [(player1, player2), ...]} for each team with at least 2 members."""
    fixtures = {}
    for team_id, members in teams.items():
        if team_filter and str(team_id) != team_filter:
            continue
        players = [str(m) for m in (members or [])]
        if len(players) < 2:
            print(f"Warning: Team {team_id} has fewer than 2 players ({len(players)} found). Skipping.",
                  file=sys.stderr)
            continue
        fixtures[str(team_id)] = generate_round_robin_pairs(players)
    return fixtures


def main(argv=None):
    base_dir = os.path.dirname(os.path.dirname(__file__))
    parser = argparse.ArgumentParser(description='Print round-robin fixtures for each team roster.')
    parser.add_argument('teams_file', nargs='?', default=os.path.join(base_dir, 'data', 'teams.yaml'))
    parser.add_argument('--team', help='Only print fixtures for this team id')
    args = parser.parse_args(argv)

    try:
        teams = load_teams(args.teams_file)
    except LeagueError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    fixtures = generate_team_fixtures(teams, args.team)
    if not fixtures:
        print("No fixtures generated.", file=sys.stderr)
        return 1

    first_team = True
    for team_id, pairs in sorted(fixtures.items()):
        if not first_team:
            print()
        print(f"# Team {team_id}")
        for player1, player2 in pairs:
            print(f"{player1} vs {player2}")
        first_team = False
    return 0


if __name__ == '__main__':
    sys.exit(main())
