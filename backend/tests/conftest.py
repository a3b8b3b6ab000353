import logging
import os
import random
import sys
import pytest

# Ensure the backend root (containing the `imposter` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from imposter import create_app, socketio
from imposter.gateway import Gateway
from imposter.models import User
from imposter.services.games import AccessGate, RoundEngine
from imposter.session import GameSession


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    TRUST_PROXY = False
    ADMIN_USER = 'Host'
    ACCESS_LIST = ['alice', 'bob', 'cara']
    ACCESS_GATE_ENABLED = True
    MODERATOR_COMMANDS_REQUIRE_ADMIN = True
    DISCONNECT_GRACE_SEC = 0
    ROUND_SUMMARY_VISIBILITY = 'moderator'
    DEFAULT_SPECIAL_ROLE_COUNT = 1
    SOCKETIO_NAMESPACE = '/'
    CORS_ORIGINS = []
    STATIC_FOLDER = None
    PRIVATE_FOLDER = os.path.join(CURRENT_DIR, 'private')
    TWITCH_CLIENT_ID = 'client-id'
    TWITCH_CLIENT_SECRET = 'client-secret'
    CALLBACK_URL = 'http://localhost/auth/twitch/callback'


class FakeSocketIO:
    """Records emits and background tasks instead of talking to a transport."""

    def __init__(self):
        self.emitted = []
        self.tasks = []
        self.slept = []

    def emit(self, event, *args, namespace=None, to=None):
        self.emitted.append({'event': event, 'args': list(args), 'to': to, 'namespace': namespace})

    def start_background_task(self, target, *args):
        self.tasks.append((target, args))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_pending(self):
        tasks, self.tasks = self.tasks, []
        for target, args in tasks:
            target(*args)

    def events(self, name, to='*'):
        """Payloads of emits named ``name``; ``to=None`` means broadcasts only."""
        return [
            (e['args'][0] if e['args'] else None)
            for e in self.emitted
            if e['event'] == name and (to == '*' or e['to'] == to)
        ]

    def clear(self):
        self.emitted = []


@pytest.fixture()
def fake_sio():
    return FakeSocketIO()


@pytest.fixture()
def game_session(fake_sio):
    """A session on a fake transport; 'host' administers, alice/bob/cara may join."""
    gate = AccessGate('host', ['alice', 'bob', 'cara'])
    return GameSession(
        Gateway(fake_sio),
        gate,
        rounds=RoundEngine(rng=random.Random(7)),
        logger=logging.getLogger('tests'),
    )


@pytest.fixture()
def flask_app():
    # No outer app context: each request must get its own ``g`` so Flask-Login
    # reloads the user from the session instead of reusing a cached one.
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def login(flask_app, test_client, login_name, display_name=None, profile_image=''):
    """Log a Flask test client in as an identity, bypassing the OAuth round trip."""
    user = flask_app.extensions['user_store'].remember(
        User(login_name, display_name or login_name.title(), profile_image)
    )
    with test_client.session_transaction() as sess:
        sess['_user_id'] = user.get_id()
        sess['_fresh'] = True
    return user


@pytest.fixture()
def connect(flask_app):
    """Factory: open a Socket.IO test client, optionally logged in as ``login_name``."""
    opened = []

    def _connect(login_name=None, display_name=None):
        http_client = flask_app.test_client()
        if login_name:
            login(flask_app, http_client, login_name, display_name)
        sio_client = socketio.test_client(flask_app, flask_test_client=http_client)
        assert sio_client.is_connected()
        sio_client.get_received()  # flush connect-time state
        opened.append(sio_client)
        return sio_client

    yield _connect
    for sio_client in opened:
        if sio_client.is_connected():
            sio_client.disconnect()


def named(packets, name):
    """Payloads of one event name among packets from a Socket.IO test client."""
    return [(pkt['args'][0] if pkt['args'] else None) for pkt in packets if pkt['name'] == name]
