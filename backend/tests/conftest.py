import os
import sys
import pytest

# Ensure the backend root (containing the `hideseek` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from hideseek import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/'
    MAP_SIZE = 20
    WALL_PROBABILITY = 0.2
    MAP_SEED = 1234
    SPAWN_X = 1
    SPAWN_Y = 1
    LIVENESS_INTERVAL_SEC = 5
    IDLE_TIMEOUT_SEC = 0
    ADMIN_TOKEN = None


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def session(flask_app):
    return flask_app.extensions['game_session']


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(connect):
    return connect()


def sid_of(session, known=()):
    """The single registered id not in ``known``."""
    (sid,) = [s for s in session.participant_ids() if s not in set(known)]
    return sid


def named(received, name):
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]
