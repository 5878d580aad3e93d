"""
Match lifecycle state machine.

    pending --submit--> submitted --approve--> completed (terminal)
                            |
                            +--dispute--> pending

Transitions are pure: they check guards against the given match and return a new
Match, leaving the input untouched. A failed guard raises before anything changes.
Persisting the result (and applying standings on approval) is the caller's job.
"""
from league.errors import ConflictError, ForbiddenError, ValidationError
from league.models import PENDING, SUBMITTED, COMPLETED

MAX_SCORE = 99


def _validate_score(value, field, max_score):
    # bool is an int subclass; a JSON true must not count as a goal
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{field} must be an integer')
    if value < 0 or value > max_score:
        raise ValidationError(f'{field} must be between 0 and {max_score}')
    return value


def _require_participant(match, actor_id, action):
    if actor_id not in match.players:
        raise ForbiddenError(f'Only the players of match {match.id} may {action} its score')


def _require_status(match, expected, action):
    if match.status != expected:
        raise ConflictError(f'Cannot {action} match {match.id}: status is {match.status}, expected {expected}')


def submit_score(match, submitter_id, score1, score2, now, max_score=MAX_SCORE):
    """Propose a score for a pending match."""
    _validate_score(score1, 'score1', max_score)
    _validate_score(score2, 'score2', max_score)
    _require_status(match, PENDING, 'submit a score for')
    _require_participant(match, submitter_id, 'submit')

    updated = match.copy()
    updated.status = SUBMITTED
    updated.score1 = score1
    updated.score2 = score2
    updated.submitted_by = submitter_id
    updated.submitted_at = now
    updated.approved_by = None
    updated.approved_at = None
    return updated


def approve_score(match, approver_id, now):
    """Confirm the submitted score. Only the opponent of the submitter may approve."""
    if match.submitted_by is not None and approver_id == match.submitted_by:
        raise ForbiddenError('A score cannot be approved by the player who submitted it')
    _require_status(match, SUBMITTED, 'approve')
    _require_participant(match, approver_id, 'approve')

    updated = match.copy()
    updated.status = COMPLETED
    updated.approved_by = approver_id
    updated.approved_at = now
    return updated


def dispute_score(match, disputer_id, reason):
    """Reject the submitted score and reopen the match for a new submission.

    ``disputed_by`` and ``dispute_reason`` stay on the match as an audit record.
    """
    reason = reason.strip() if isinstance(reason, str) else ''
    if not reason:
        raise ValidationError('A reason is required to dispute a score')
    if match.submitted_by is not None and disputer_id == match.submitted_by:
        raise ForbiddenError('A score cannot be disputed by the player who submitted it')
    _require_status(match, SUBMITTED, 'dispute')
    _require_participant(match, disputer_id, 'dispute')

    updated = match.copy()
    updated.status = PENDING
    updated.score1 = None
    updated.score2 = None
    updated.submitted_by = None
    updated.submitted_at = None
    updated.approved_by = None
    updated.approved_at = None
    updated.disputed_by = disputer_id
    updated.dispute_reason = reason
    return updated
