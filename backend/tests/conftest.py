import os
import sys
from urllib.parse import urlencode

import pytest

# Ensure the backend root (containing the `mastermind` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from mastermind import create_app, socketio
from mastermind.models import Participant
from mastermind.services.games.broadcast import Broadcaster


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ALLOWED_ORIGINS = ['http://localhost:5173']
    CODE_LENGTH = 4
    CODE_ALPHABET = '0123456789'
    INITIAL_TURNS = 9
    DEBUG_REVEAL_CODE = False
    MATCHMAKER_INTERVAL_SEC = 0.05
    CODE_SOURCE = 'local'
    LOG_LEVEL = 'DEBUG'


class SequenceCodes:
    """Hands out the given codes in order, then repeats the last one."""

    def __init__(self, *codes):
        self.codes = list(codes)
        self.calls = 0

    def generate(self, length):
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        assert len(code) == length
        return code


class RecordingBroadcaster(Broadcaster):
    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)
        super().__init__(self._record)

    def _record(self, sid, text):
        if sid in self.failing:
            raise ConnectionError(f"{sid} is gone")
        self.sent.append((sid, text))

    def messages_for(self, sid):
        return [text for to, text in self.sent if to == sid]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def codes():
    return SequenceCodes


@pytest.fixture()
def make_recorder():
    return RecordingBroadcaster


@pytest.fixture()
def recorder():
    return RecordingBroadcaster()


@pytest.fixture()
def alice():
    return Participant(sid='sid-alice', username='alice')


@pytest.fixture()
def bob():
    return Participant(sid='sid-bob', username='bob')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def coordinator(flask_app):
    return flask_app.extensions['mastermind']


@pytest.fixture()
def sio_connect(flask_app):
    """Factory for Socket.IO test clients on /ws, joined with the given query."""
    opened = []

    def _connect(username=None, mode=None):
        params = {}
        if username is not None:
            params['username'] = username
        if mode is not None:
            params['mode'] = mode
        test_client = socketio.test_client(
            flask_app,
            namespace='/ws',
            query_string=urlencode(params),
            flask_test_client=flask_app.test_client(),
        )
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


def received_texts(test_client):
    """Plain text messages received on /ws since the last call."""
    texts = []
    for pkt in test_client.get_received('/ws'):
        if pkt['name'] != 'message':
            continue
        args = pkt['args']
        texts.append(args if isinstance(args, str) else args[0])
    return texts


@pytest.fixture()
def texts():
    return received_texts
