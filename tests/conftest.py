"""Shared fixtures for Stow Kiosk tests."""

import hashlib
import hmac
import json
import time
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from simple_websocket import ConnectionClosed

from stowkiosk.app import create_app
from stowkiosk.realtime import BroadcastHub
from stowkiosk.state import Database, StationStore


JWT_SECRET = 'test-jwt-secret-0123456789abcdef0123'
SIGNING_SECRET = 'test-signing-secret'


class FakeConnection:
    """Stands in for a simple_websocket.Server."""

    def __init__(self, connected=True, fail_on_send=False, send_error=None):
        self.connected = connected
        self.fail_on_send = fail_on_send
        self.send_error = send_error
        self.sent = []
        self.closed = False

    def send(self, data):
        if self.send_error is not None:
            raise self.send_error
        if self.fail_on_send:
            raise ConnectionClosed()
        self.sent.append(data)

    def close(self):
        self.closed = True
        self.connected = False

    def messages(self):
        return [json.loads(data) for data in self.sent]


class FakeSlackClient:
    """Records outbound Slack calls instead of making them."""

    def __init__(self, fail=False):
        self.fail = fail
        self.responses = []
        self.posts = []

    def is_configured(self):
        return True

    def respond(self, response_url, payload):
        if self.fail:
            raise RuntimeError('Slack unreachable')
        self.responses.append((response_url, payload))

    def post_message(self, channel, blocks, text=''):
        if self.fail:
            raise RuntimeError('Slack unreachable')
        self.posts.append({'channel': channel, 'blocks': blocks, 'text': text})
        return {'ok': True, 'channel': channel}


def sign_slack_request(body, timestamp=None, secret=SIGNING_SECRET):
    """Return the headers Slack would send for ``body``."""
    timestamp = str(timestamp if timestamp is not None else int(time.time()))
    basestring = f'v0:{timestamp}:{body}'.encode('utf-8')
    digest = hmac.new(secret.encode('utf-8'), basestring, hashlib.sha256).hexdigest()
    return {
        'X-Slack-Request-Timestamp': timestamp,
        'X-Slack-Signature': f'v0={digest}',
    }


def make_token(secret=JWT_SECRET, expires_in=timedelta(hours=1)):
    return jwt.encode(
        {
            'id': 1,
            'username': 'admin',
            'role': 'admin',
            'exp': datetime.now(timezone.utc) + expires_in,
        },
        secret,
        algorithm='HS256',
    )


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'kiosk.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def stations(database):
    return StationStore(database)


@pytest.fixture
def hub():
    return BroadcastHub()


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'RATELIMIT_ENABLED': False,
        'DATABASE_URL': f"sqlite:///{tmp_path / 'app.db'}",
        'JWT_SECRET': JWT_SECRET,
        'SLACK_SIGNING_SECRET': SIGNING_SECRET,
        'ENVIRONMENT': 'test',
    })
    app.extensions['stowkiosk'].bridge.client = FakeSlackClient()
    yield app
    app.extensions['stowkiosk'].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions['stowkiosk']


@pytest.fixture
def auth_headers():
    return {'Authorization': f'Bearer {make_token()}'}
