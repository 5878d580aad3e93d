"""
Team rosters: which players belong to which team.

Team management lives outside the league core; this module only answers the two
questions the core asks. ``teams.yaml`` maps each team id to its member ids::

    lions:
      - alice
      - bob
    tigers:
      - carol
"""
import os

import yaml

from league.errors import InternalError


class TeamDirectory:
    def team_of(self, user_id):
        """Return the team id of a user, or None if the user has no team."""
        raise NotImplementedError

    def members(self, team_id):
        """Return the member ids of a team (empty if unknown)."""
        raise NotImplementedError


class StaticTeamDirectory(TeamDirectory):
    def __init__(self, teams):
        self.teams = {str(team): [str(m) for m in (members or [])] for team, members in teams.items()}

    def team_of(self, user_id):
        for team_id, members in self.teams.items():
            if user_id in members:
                return team_id
        return None

    def members(self, team_id):
        return list(self.teams.get(team_id, []))

    def __repr__(self):
        return f"StaticTeamDirectory(teams={sorted(self.teams)})"


def load_teams(file_path):
    """Load the team roster YAML. A missing or empty file means no teams."""
    if not os.path.exists(file_path):
        return {}
    try:
        with open(file_path, mode='r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as e:
        raise InternalError(f'Failed to read teams from {file_path}: {e}') from e
    if not data:
        return {}
    if not isinstance(data, dict):
        raise InternalError(f'{file_path} must map team ids to member lists')
    return data


class YamlTeamDirectory(StaticTeamDirectory):
    """Roster read from a teams.yaml file at construction time."""

    def __init__(self, file_path):
        self.file_path = file_path
        super().__init__(load_teams(file_path))

    def __repr__(self):
        return f"YamlTeamDirectory(file_path={self.file_path})"
