"""
League service: the core API used by the web layer.

Each operation is one unit of work: load the tournament, run the match transition,
commit with the version that was read, then publish a domain event. Approval commits
the completed match together with both standings rows in the same ``commit`` call,
so a completed match never exists without its standings effect.
"""
import logging
import uuid
from datetime import datetime, timezone

from league import events
from league.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from league.leaderboard import rank
from league.match_state import MAX_SCORE, approve_score, dispute_score, submit_score
from league.models import SCHEDULED, ACTIVE, FINISHED, TOURNAMENT_STATUSES
from league.round_robin import build_tournament
from league.standings import apply_result

logger = logging.getLogger(__name__)

LIST_LIMIT = 100

# Tournament status only moves forward; it is set by the organiser, not derived from matches.
STATUS_TRANSITIONS = {
    SCHEDULED: (ACTIVE, FINISHED),
    ACTIVE: (FINISHED,),
    FINISHED: (),
}


def _utcnow():
    return datetime.now(timezone.utc).isoformat()


class LeagueService:
    def __init__(self, repository, teams, publisher=None, clock=None, id_factory=None,
                 max_score=MAX_SCORE):
        self.repository = repository
        self.teams = teams
        self.publisher = publisher if publisher else events.NullPublisher()
        self.clock = clock if clock else _utcnow
        self.id_factory = id_factory if id_factory else (lambda: uuid.uuid4().hex)
        self.max_score = max_score

    def _publish(self, event_type, tournament, match, payload):
        try:
            self.publisher.publish(events.Event(event_type, tournament.id, match.id, payload))
        except Exception as e:
            # The transition is already committed; a lost notification is acceptable.
            logger.warning('Failed to publish %s event for match %s: %s', event_type, match.id, e)

    def _team_of(self, actor_id):
        team_id = self.teams.team_of(actor_id)
        if team_id is None:
            raise ForbiddenError('You must belong to a team')
        return team_id

    # ----- tournaments -----

    def create_tournament(self, actor_id, name, participant_ids, start_date, end_date):
        """Create a round-robin tournament for the actor's team."""
        team_id = self._team_of(actor_id)
        tournament = build_tournament(
            tournament_id=self.id_factory(),
            name=name,
            owner_team_id=team_id,
            participant_ids=participant_ids,
            start_date=start_date,
            end_date=end_date,
            team_members=self.teams.members(team_id),
            created_by=actor_id,
            created_at=self.clock(),
        )
        created = self.repository.add(tournament)
        logger.info('Tournament %s (%s) created by %s with %d participants and %d matches',
                    created.id, created.name, actor_id, len(created.participant_ids),
                    len(created.matches))
        return created

    def list_tournaments(self, actor_id, limit=LIST_LIMIT):
        return self.repository.list_for_team(self._team_of(actor_id), limit=limit)

    def get_tournament(self, tournament_id, actor_id):
        """Return a tournament owned by the actor's team.

        Tournaments of other teams are reported as not found.
        """
        team_id = self._team_of(actor_id)
        tournament = self.repository.get(tournament_id)
        if tournament.owner_team_id != team_id:
            raise NotFoundError(f'Tournament {tournament_id} not found')
        return tournament

    def set_status(self, tournament_id, actor_id, status):
        if status not in TOURNAMENT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(TOURNAMENT_STATUSES)}")
        tournament = self.get_tournament(tournament_id, actor_id)
        if status not in STATUS_TRANSITIONS[tournament.status]:
            raise ConflictError(f'Cannot move tournament from {tournament.status} to {status}')
        updated = self.repository.commit(tournament.id, tournament.version, status=status)
        logger.info('Tournament %s status %s -> %s by %s', tournament.id, tournament.status,
                    status, actor_id)
        return updated

    # ----- matches -----

    def _commit_match(self, tournament, match, standings=()):
        try:
            return self.repository.commit(tournament.id, tournament.version,
                                          matches=[match], standings=standings)
        except ConflictError:
            logger.warning('Lost concurrent update on match %s (tournament %s, version %d)',
                           match.id, tournament.id, tournament.version)
            raise

    def submit_score(self, match_id, submitter_id, score1, score2):
        tournament, match = self.repository.find_match(match_id)
        submitted = submit_score(match, submitter_id, score1, score2, now=self.clock(),
                                 max_score=self.max_score)
        self._commit_match(tournament, submitted)
        logger.info('Match %s: %s submitted %d-%d', match_id, submitter_id, score1, score2)
        self._publish(events.SUBMITTED, tournament, submitted, {
            'score1': score1,
            'score2': score2,
            'submitted_by': submitter_id,
            'opponent_id': submitted.opponent_of(submitter_id),
        })
        return submitted

    def approve_score(self, match_id, approver_id):
        tournament, match = self.repository.find_match(match_id)
        completed = approve_score(match, approver_id, now=self.clock())
        rows = apply_result(tournament.standings, completed)
        self._commit_match(tournament, completed, standings=rows)
        logger.info('Match %s: %s approved %d-%d', match_id, approver_id,
                    completed.score1, completed.score2)
        self._publish(events.APPROVED, tournament, completed, {
            'score1': completed.score1,
            'score2': completed.score2,
            'approved_by': approver_id,
        })
        return completed

    def dispute_score(self, match_id, disputer_id, reason):
        tournament, match = self.repository.find_match(match_id)
        reopened = dispute_score(match, disputer_id, reason)
        self._commit_match(tournament, reopened)
        logger.info('Match %s: %s disputed the score (%s)', match_id, disputer_id,
                    reopened.dispute_reason)
        self._publish(events.DISPUTED, tournament, reopened, {
            'disputed_by': disputer_id,
            'reason': reopened.dispute_reason,
        })
        return reopened

    # ----- standings -----

    def get_leaderboard(self, tournament_id):
        return rank(self.repository.get(tournament_id).standings)
