"""
Tournament construction: single round-robin fixtures and a zeroed standings table.
"""
import datetime
from itertools import combinations

from league.errors import ValidationError
from league.models import Match, StandingsRow, Tournament, SCHEDULED


def match_id_for(tournament_id, ordinal):
    """Match ids embed the tournament id so a match id alone resolves its tournament."""
    return f"{tournament_id}-{ordinal}"


def tournament_id_from_match_id(match_id):
    tournament_id, sep, ordinal = str(match_id).rpartition('-')
    if not sep or not tournament_id or not ordinal.isdigit():
        return None
    return tournament_id


def generate_round_robin_pairs(participant_ids):
    """Every unordered pair (i, j) with i < j, in participant order."""
    return list(combinations(participant_ids, 2))


def _parse_date(value, field):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError(f'{field} is required')
    text = value.strip()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    # Full ISO timestamps are accepted and truncated to their date
    try:
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(f'{field} must be an ISO date (YYYY-MM-DD), got {value!r}')


def validate_participants(participant_ids, team_members):
    """Check size, uniqueness and team membership of a participant list.

    Returns the participants as a list of strings, preserving order.
    """
    if not isinstance(participant_ids, (list, tuple)):
        raise ValidationError('participants must be a list of player ids')
    participants = [str(p).strip() for p in participant_ids]
    if len(participants) < 2:
        raise ValidationError('A tournament needs at least 2 participants')
    if any(not p for p in participants):
        raise ValidationError('Participant ids must not be empty')

    seen = set()
    duplicates = []
    for p in participants:
        if p in seen and p not in duplicates:
            duplicates.append(p)
        seen.add(p)
    if duplicates:
        raise ValidationError(f"Duplicate participants: {', '.join(duplicates)}")

    members = set(team_members)
    outsiders = [p for p in participants if p not in members]
    if outsiders:
        raise ValidationError(f"Participants not in your team: {', '.join(outsiders)}")
    return participants


def build_tournament(tournament_id, name, owner_team_id, participant_ids, start_date, end_date,
                     team_members, created_by=None, created_at=None):
    """Build a scheduled tournament with C(n, 2) pending matches and n zeroed standings rows.

    Deterministic: the same ordered participant list always yields the same match list.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Tournament name is required')
    name = name.strip()
    participants = validate_participants(participant_ids, team_members)
    start = _parse_date(start_date, 'start_date')
    end = _parse_date(end_date, 'end_date')
    if start > end:
        raise ValidationError('start_date must not be after end_date')

    matches = [
        Match(id=match_id_for(tournament_id, ordinal), player1_id=p1, player2_id=p2)
        for ordinal, (p1, p2) in enumerate(generate_round_robin_pairs(participants), start=1)
    ]
    standings = [StandingsRow(player_id=p) for p in participants]

    return Tournament(
        id=tournament_id,
        name=name,
        owner_team_id=owner_team_id,
        participant_ids=participants,
        matches=matches,
        standings=standings,
        status=SCHEDULED,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        created_by=created_by,
        created_at=created_at,
    )
