import os
import random
import sys
import pytest

# Ensure the backend root (containing the `mathbattle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from mathbattle import build_battle_service, create_app, socketio
from mathbattle.services.battle import BattleService, RoomTimers


# Answers that satisfy each catalog problem
SOLUTIONS = {
    'p1': {'ans': '233168'},
    'p2': {'a': '3', 'b': '7'},
    'p3': {'a': '200', 'b': '375', 'c': '425'},
    'p4': {'ans': '104743'},
}
WRONG = {'ans': '1', 'a': '1', 'b': '1', 'c': '1'}


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    MAX_CONTENT_LENGTH = 4096
    LOG_LEVEL = 'DEBUG'
    BATTLE_MAX_PLAYERS = 4
    BATTLE_NEXT_ROUND_DELAY_MS = 3000
    BATTLE_EMPTY_ROOM_TTL_SEC = 60
    BATTLE_ROOM_TTL_SEC = 3600


class FakeClock:
    """Millisecond wall clock that only moves when told to."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def timers():
    return RoomTimers(enabled=False)


@pytest.fixture()
def service(clock, timers):
    return BattleService(
        timers=timers,
        clock=clock,
        max_players=4,
        empty_room_ttl_ms=60_000,
        room_ttl_ms=3_600_000,
        rng=random.Random(7),
    )


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    application.extensions['battle'] = build_battle_service(application, clock=clock)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def battle(flask_app):
    return flask_app.extensions['battle']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
