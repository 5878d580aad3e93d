"""
Shared pytest fixtures for league tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the threaded race tests
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
# Keep app import from generating a key file in the repository data directory
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

from league.events import EventBus
from league.repository import InMemoryRepository, YamlRepository
from league.service import LeagueService
from league.teams import StaticTeamDirectory


TEAMS = {
    'lions': ['alice', 'bob', 'carol', 'dave'],
    'tigers': ['erin', 'frank'],
}


class FixedClock:
    """Deterministic clock returning increasing ISO timestamps."""

    def __init__(self):
        self.ticks = 0

    def __call__(self):
        self.ticks += 1
        return f"2026-01-01T10:00:{self.ticks:02d}+00:00"


class SequentialIds:
    def __init__(self, prefix='t'):
        self.prefix = prefix
        self.count = 0

    def __call__(self):
        self.count += 1
        return f"{self.prefix}{self.count:04d}"


@pytest.fixture
def teams():
    return StaticTeamDirectory(TEAMS)


@pytest.fixture(params=['memory', 'yaml'])
def repository(request, tmp_path):
    """Run repository-backed tests against both adapters."""
    if request.param == 'memory':
        return InMemoryRepository()
    return YamlRepository(str(tmp_path))


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def service(repository, teams, bus):
    return LeagueService(repository, teams, publisher=bus, clock=FixedClock(),
                         id_factory=SequentialIds())


@pytest.fixture
def abc_tournament(service):
    """Three players A, B, C as alice, bob, carol."""
    return service.create_tournament('alice', 'Spring Cup', ['alice', 'bob', 'carol'],
                                     '2026-03-01', '2026-03-31')


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the web app at a temporary data directory with a teams.yaml roster."""
    import app as app_module

    teams_file = tmp_path / "teams.yaml"
    teams_file.write_text(yaml.dump(TEAMS, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TEAMS_FILE', str(teams_file))
    monkeypatch.setattr(app_module, '_rate_limit_store', {})
    monkeypatch.setattr(app_module, 'event_bus', EventBus())
    return tmp_path


def make_client(user=None):
    """Create a test client, logged in as ``user`` when given."""
    from app import app
    app.config['TESTING'] = True
    client = app.test_client()
    if user:
        with client.session_transaction() as sess:
            sess['user'] = user
    return client


@pytest.fixture
def client_for(temp_data_dir):
    """Factory fixture: ``client_for('bob')`` returns a client logged in as bob."""
    return make_client


@pytest.fixture
def client(client_for):
    """Authenticated test client for alice (team lions)."""
    return client_for('alice')
