"""
Flask JSON API for the league tournament manager.
"""
import os
import json
import queue
import time
from datetime import timedelta
from functools import wraps
from flask import Flask, request, jsonify, session, Response, stream_with_context
from league.errors import LeagueError, ValidationError
from league.events import EventBus
from league.leaderboard import leaderboard_table
from league.repository import YamlRepository
from league.round_robin import tournament_id_from_match_id
from league.service import LeagueService
from league.teams import YamlTeamDirectory

app = Flask(__name__)


def _get_or_create_secret_key() -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode() if isinstance(env_key, str) else env_key
    key_file = os.path.join(DATA_DIR, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('LEAGUE_DATA_DIR', os.path.join(BASE_DIR, 'data'))

app.secret_key = _get_or_create_secret_key()
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=3650)

TEAMS_FILE = os.path.join(DATA_DIR, 'teams.yaml')
MAX_SCORE = int(os.environ.get('LEAGUE_MAX_SCORE', '99'))
SUBMIT_RATE_LIMIT = int(os.environ.get('LEAGUE_SUBMIT_RATE_LIMIT', '30'))
STREAM_POLL_SECONDS = 3
STREAM_HEARTBEAT_SECONDS = 15

# Fan-out for the SSE endpoint; shared by every request served by this process.
event_bus = EventBus()

# Rate limiting for score submissions
# Structure: {(ip, actor, tournament_id): [timestamp, timestamp, ...]}
_rate_limit_store = {}


def get_service() -> LeagueService:
    """Build the service from the current data directory settings."""
    return LeagueService(
        repository=YamlRepository(DATA_DIR),
        teams=YamlTeamDirectory(TEAMS_FILE),
        publisher=event_bus,
        max_score=MAX_SCORE,
    )


def login_required(f):
    """Reject requests without an authenticated user in the session."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user' not in session:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def check_rate_limit(ip: str, actor: str, tournament_id: str, max_per_hour: int = 30) -> bool:
    """Check if a client has exceeded the score submission rate limit for a tournament.

    Returns:
        True if rate limit NOT exceeded, False if exceeded
    """
    key = (ip, actor, tournament_id)
    now = time.time()
    cutoff = now - 3600

    recent = [ts for ts in _rate_limit_store.get(key, []) if ts > cutoff]
    if len(recent) >= max_per_hour:
        _rate_limit_store[key] = recent
        return False

    recent.append(now)
    _rate_limit_store[key] = recent
    return True


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _client_ip() -> str:
    client_ip = request.headers.get('X-Forwarded-For', request.remote_addr)
    if client_ip:
        client_ip = client_ip.split(',')[0].strip()
    return client_ip or 'unknown'


@app.errorhandler(LeagueError)
def handle_league_error(error):
    if error.http_status >= 500:
        app.logger.error(f'{request.method} {request.path} failed: {error.message}')
    else:
        app.logger.info(f'{request.method} {request.path} rejected ({error.http_status}): {error.message}')
    return jsonify({'success': False, 'error': error.message}), error.http_status


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/tournaments', methods=['POST'])
@login_required
def api_create_tournament():
    """Create a round-robin tournament for the current user's team.

    Requires: name, participants, start_date, end_date in JSON body.
    """
    data = _json_body()
    tournament = get_service().create_tournament(
        actor_id=session['user'],
        name=data.get('name', ''),
        participant_ids=data.get('participants'),
        start_date=data.get('start_date'),
        end_date=data.get('end_date'),
    )
    return jsonify({'success': True, 'tournament': tournament.to_dict()}), 201


@app.route('/api/tournaments', methods=['GET'])
@login_required
def api_list_tournaments():
    tournaments = get_service().list_tournaments(session['user'])
    return jsonify({'success': True, 'tournaments': [t.to_dict() for t in tournaments]})


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
@login_required
def api_get_tournament(tournament_id):
    tournament = get_service().get_tournament(tournament_id, session['user'])
    return jsonify({'success': True, 'tournament': tournament.to_dict()})


@app.route('/api/tournaments/<tournament_id>/status', methods=['POST'])
@login_required
def api_set_tournament_status(tournament_id):
    status = str(_json_body().get('status', '')).strip()
    tournament = get_service().set_status(tournament_id, session['user'], status)
    return jsonify({'success': True, 'tournament': tournament.to_dict()})


@app.route('/api/matches/<match_id>/submit', methods=['POST'])
@login_required
def api_submit_score(match_id):
    """Propose a score for a pending match; the opponent must then approve or dispute it.

    Requires: score1, score2 in JSON body.
    Rate limited per client IP, user and tournament.
    """
    tournament_id = tournament_id_from_match_id(match_id) or match_id
    if not check_rate_limit(_client_ip(), session['user'], tournament_id, SUBMIT_RATE_LIMIT):
        return jsonify({'success': False, 'error': 'Rate limit exceeded. Please try again later.'}), 429

    data = _json_body()
    if 'score1' not in data or 'score2' not in data:
        raise ValidationError('score1 and score2 are required')
    match = get_service().submit_score(match_id, session['user'], data['score1'], data['score2'])
    return jsonify({
        'success': True,
        'message': 'Score submitted. Awaiting opponent approval.',
        'match': match.to_dict(),
    })


@app.route('/api/matches/<match_id>/approve', methods=['POST'])
@login_required
def api_approve_score(match_id):
    match = get_service().approve_score(match_id, session['user'])
    return jsonify({'success': True, 'message': 'Score approved and finalized!', 'match': match.to_dict()})


@app.route('/api/matches/<match_id>/dispute', methods=['POST'])
@login_required
def api_dispute_score(match_id):
    """Reject a submitted score and reopen the match.

    Requires: reason in JSON body.
    """
    reason = _json_body().get('reason', '')
    match = get_service().dispute_score(match_id, session['user'], reason)
    return jsonify({
        'success': True,
        'message': 'Score disputed. Please re-enter the correct score.',
        'match': match.to_dict(),
    })


@app.route('/api/leaderboard/<tournament_id>')
@login_required
def api_leaderboard(tournament_id):
    rows = get_service().get_leaderboard(tournament_id)
    return jsonify({'success': True, 'leaderboard': leaderboard_table(rows)})


def _format_sse(event) -> str:
    return f"event: {event.type}\ndata: {json.dumps(event.to_dict())}\n\n"


@app.route('/api/tournaments/<tournament_id>/events')
@login_required
def api_tournament_events(tournament_id):
    """Server-Sent Events stream of score submissions, approvals and disputes."""
    get_service().get_tournament(tournament_id, session['user'])

    def generate():
        """Yield SSE events as they arrive, with a heartbeat to keep the connection alive."""
        # Subscribed only once the stream is consumed; unsubscribed when it closes
        subscription = event_bus.subscribe(tournament_id)
        try:
            # Send immediate connected event so client shows "Live" status right away
            yield "event: connected\ndata: ok\n\n"
            idle = 0
            while True:
                try:
                    event = subscription.get(timeout=STREAM_POLL_SECONDS)
                except queue.Empty:
                    idle += STREAM_POLL_SECONDS
                    if idle >= STREAM_HEARTBEAT_SECONDS:
                        idle = 0
                        yield ": heartbeat\n\n"
                    continue
                idle = 0
                yield _format_sse(event)
        finally:
            event_bus.unsubscribe(subscription)

    return Response(
        stream_with_context(generate()),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        },
    )


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1', port=int(os.environ.get('PORT', '5000')))
