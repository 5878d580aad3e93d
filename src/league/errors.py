"""
Error taxonomy for the league core.

Every error carries the HTTP status the API layer answers with, so the Flask
app can map them with a single error handler.
"""


class LeagueError(Exception):
    """Base class for all league errors."""
    http_status = 500

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class ValidationError(LeagueError):
    """Malformed input (too few participants, missing reason, bad score)."""
    http_status = 400


class ForbiddenError(LeagueError):
    """Actor is not entitled to perform the transition."""
    http_status = 403


class NotFoundError(LeagueError):
    """Unknown tournament or match."""
    http_status = 404


class ConflictError(LeagueError):
    """State guard violated or optimistic-concurrency check lost."""
    http_status = 409


class InternalError(LeagueError):
    """Persistence failure or broken internal invariant."""
    http_status = 500
