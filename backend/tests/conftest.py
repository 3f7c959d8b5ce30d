import os
import sys
import pytest

# Ensure the backend root (containing the `kneading` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from kneading import create_app, db, get_machine, socketio
from kneading.services.game import (
    GameSettings,
    GatewayError,
    LeaderboardEntry,
    LeaderboardGateway,
    ManualTimerService,
    SceneMachine,
)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TIMER_BACKEND = 'manual'


VALID_FORM = {
    'name': 'Ada Baker',
    'phone': '555-0100',
    'email': 'ada@example.com',
    'consent_given': True,
}


class RecordingGateway(LeaderboardGateway):
    """In-memory store that records calls and can be told to fail."""

    def __init__(self, entries=None):
        self.entries = list(entries or [])
        self.inserts = []
        self.fetches = []
        self.fail_insert = False
        self.fail_fetch = False

    def fetch_top(self, n):
        self.fetches.append(n)
        if self.fail_fetch:
            raise GatewayError('store unreachable')
        # sorted() is stable, so ties keep arrival order
        return sorted(self.entries, key=lambda e: -e.score)[:n]

    def insert(self, submission):
        self.inserts.append(submission)
        if self.fail_insert:
            raise GatewayError('insert rejected')
        entry = LeaderboardEntry(nickname=submission.nickname, score=submission.score)
        self.entries.append(entry)
        return entry


@pytest.fixture()
def timers():
    return ManualTimerService()


@pytest.fixture()
def gateway():
    return RecordingGateway()


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def machine(timers, gateway, events):
    m = SceneMachine(
        timers,
        gateway,
        settings=GameSettings(),
        nickname_factory=lambda: '🍞 Quokka #1234',
        clock=lambda: 1700000000.0,
    )
    m.add_listener(lambda event, payload: events.append((event, payload)))
    m.start()
    return m


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_machine(flask_app):
    m = get_machine(flask_app)
    m.start()
    return m


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
