import os
import random
import sys
import pytest

# Ensure the backend root (containing the `spectrum` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from spectrum import create_app, socketio, rooms
from spectrum.models import Room, Player


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SOCKETIO_NAMESPACE = '/ws'
    CORS_ORIGINS = '*'
    MIN_PLAYERS = 2
    DEFAULT_TOTAL_ROUNDS = 5
    MAX_TOTAL_ROUNDS = 50
    ROOM_CODE_LENGTH = 5


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    for code in rooms.codes():
        rooms.delete(code)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    """Create connected Socket.IO test clients on /ws; disconnects leftovers."""
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        test_client.get_received('/ws')
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def make_room():
    """Build a lobby with the given player ids; the first one hosts."""
    def _make(*player_ids, **kwargs):
        ids = player_ids or ('A', 'B', 'C')
        return Room(
            code='TEST1',
            host_id=ids[0],
            players=[Player(id=pid, name=pid) for pid in ids],
            player_scores={pid: 0 for pid in ids},
            cluegiver_id=ids[0],
            **kwargs,
        )
    return _make
