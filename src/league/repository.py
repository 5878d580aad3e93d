"""
Tournament persistence with optimistic concurrency.

A tournament is stored as one normalized record (tournament fields, matches and
standings rows keyed by id) carrying a ``version``. Writers read a tournament, compute
their changes, and call ``commit`` with the version they read; ``commit`` rejects the
write with ConflictError if anyone committed in between. Match and standings changes
passed to a single ``commit`` are applied together or not at all.
"""
import logging
import os
import tempfile
import threading

import yaml
from filelock import FileLock, Timeout

from league.errors import ConflictError, InternalError, NotFoundError
from league.models import Tournament
from league.round_robin import tournament_id_from_match_id

logger = logging.getLogger(__name__)


class TournamentRepository:
    def add(self, tournament):
        raise NotImplementedError

    def get(self, tournament_id):
        """Return the tournament or raise NotFoundError."""
        raise NotImplementedError

    def list_for_team(self, team_id, limit=100):
        raise NotImplementedError

    def commit(self, tournament_id, expected_version, matches=(), standings=(), status=None):
        """Atomically replace the given matches/standings rows and bump the version."""
        raise NotImplementedError

    def find_match(self, match_id):
        """Return (tournament, match) for a match id, or raise NotFoundError."""
        tournament_id = tournament_id_from_match_id(match_id)
        if tournament_id is None:
            raise NotFoundError(f'Match {match_id} not found')
        try:
            tournament = self.get(tournament_id)
        except NotFoundError:
            raise NotFoundError(f'Match {match_id} not found')
        match = tournament.get_match(match_id)
        if match is None:
            raise NotFoundError(f'Match {match_id} not found')
        return tournament, match


def apply_changes(tournament, expected_version, matches=(), standings=(), status=None):
    """Return a copy of ``tournament`` with the changes applied and its version bumped."""
    if tournament.version != expected_version:
        raise ConflictError(
            f'Tournament {tournament.id} was modified concurrently '
            f'(expected version {expected_version}, found {tournament.version}); retry'
        )
    updated = tournament.copy()
    match_index = {m.id: i for i, m in enumerate(updated.matches)}
    for match in matches:
        if match.id not in match_index:
            raise InternalError(f'Match {match.id} does not belong to tournament {tournament.id}')
        updated.matches[match_index[match.id]] = match.copy()
    row_index = {r.player_id: i for i, r in enumerate(updated.standings)}
    for row in standings:
        if row.player_id not in row_index:
            raise InternalError(f'No standings row for {row.player_id} in tournament {tournament.id}')
        updated.standings[row_index[row.player_id]] = row.copy()
    if status is not None:
        updated.status = status
    updated.version = tournament.version + 1
    return updated


def _newest_first(tournaments, limit):
    ordered = sorted(tournaments, key=lambda t: t.created_at or '', reverse=True)
    return ordered[:limit]


class InMemoryRepository(TournamentRepository):
    def __init__(self):
        self._records = {}
        self._lock = threading.Lock()

    def add(self, tournament):
        with self._lock:
            if tournament.id in self._records:
                raise ConflictError(f'Tournament {tournament.id} already exists')
            self._records[tournament.id] = tournament.to_dict()
        return tournament.copy()

    def get(self, tournament_id):
        with self._lock:
            record = self._records.get(tournament_id)
        if record is None:
            raise NotFoundError(f'Tournament {tournament_id} not found')
        return Tournament.from_dict(record)

    def list_for_team(self, team_id, limit=100):
        with self._lock:
            records = list(self._records.values())
        owned = [Tournament.from_dict(r) for r in records if r['owner_team_id'] == team_id]
        return _newest_first(owned, limit)

    def commit(self, tournament_id, expected_version, matches=(), standings=(), status=None):
        with self._lock:
            record = self._records.get(tournament_id)
            if record is None:
                raise NotFoundError(f'Tournament {tournament_id} not found')
            updated = apply_changes(Tournament.from_dict(record), expected_version,
                                    matches, standings, status)
            self._records[tournament_id] = updated.to_dict()
        return updated


class YamlRepository(TournamentRepository):
    """One ``tournaments/<id>.yaml`` document per tournament, guarded by a file lock.

    Documents are written to a temporary file and moved into place, so readers never
    see a partial write and can read without taking the lock.
    """

    def __init__(self, data_dir, lock_timeout=10):
        self.data_dir = data_dir
        self.tournaments_dir = os.path.join(data_dir, 'tournaments')
        os.makedirs(self.tournaments_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    def _path(self, tournament_id):
        tournament_id = str(tournament_id)
        if not tournament_id or '..' in tournament_id or '/' in tournament_id or '\\' in tournament_id:
            return None
        return os.path.join(self.tournaments_dir, f'{tournament_id}.yaml')

    def _read(self, path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error('Failed to read %s: %s', path, e)
            raise InternalError(f'Failed to read tournament data: {e}') from e
        if not data or 'tournament' not in data:
            raise InternalError(f'Corrupted tournament file {path}')
        return Tournament.from_dict(data['tournament'])

    def _write(self, tournament):
        path = self._path(tournament.id)
        fd, tmp_path = tempfile.mkstemp(dir=self.tournaments_dir, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                yaml.dump({'tournament': tournament.to_dict()}, f, default_flow_style=False,
                          sort_keys=False)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error('Failed to write %s: %s', path, e)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise InternalError(f'Failed to save tournament {tournament.id}: {e}') from e

    def _locked(self):
        try:
            return self._lock.acquire()
        except Timeout:
            raise ConflictError('Tournament data is busy; retry')

    def add(self, tournament):
        path = self._path(tournament.id)
        if path is None:
            raise InternalError(f'Invalid tournament id {tournament.id!r}')
        with self._locked():
            if os.path.exists(path):
                raise ConflictError(f'Tournament {tournament.id} already exists')
            self._write(tournament)
        return tournament.copy()

    def get(self, tournament_id):
        path = self._path(tournament_id)
        if path is None or not os.path.exists(path):
            raise NotFoundError(f'Tournament {tournament_id} not found')
        return self._read(path)

    def list_for_team(self, team_id, limit=100):
        owned = []
        for name in sorted(os.listdir(self.tournaments_dir)):
            if not name.endswith('.yaml'):
                continue
            tournament = self._read(os.path.join(self.tournaments_dir, name))
            if tournament.owner_team_id == team_id:
                owned.append(tournament)
        return _newest_first(owned, limit)

    def commit(self, tournament_id, expected_version, matches=(), standings=(), status=None):
        with self._locked():
            current = self.get(tournament_id)
            updated = apply_changes(current, expected_version, matches, standings, status)
            self._write(updated)
        return updated
