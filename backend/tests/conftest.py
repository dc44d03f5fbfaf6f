import os
import sys
import pytest

# Ensure the backend root (containing the `sketchguess` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sketchguess import create_app, db, socketio
from sketchguess.config import Config


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    MIN_PLAYERS = 2
    MAX_ROUNDS = 3
    ROUND_DURATION_SEC = 60
    CELEBRATION_DELAY_SEC = 0
    TIMER_HEARTBEAT_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import sketchguess.models  # noqa: F401
        from sketchguess.services.games.words import seed_word_categories
        db.create_all()
        seed_word_categories()
        db.session.commit()
    # Each request pushes its own app context, so Flask-Login's per-request
    # user never leaks between the test clients below.
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def login_client(flask_app):
    """Factory for a test client registered (and logged in) as a fresh user."""
    def _make(username, display_name=None):
        test_client = flask_app.test_client()
        res = test_client.post('/auth/register', json={
            'username': username,
            'password': 'password',
            'display_name': display_name or username.title(),
        })
        assert res.status_code == 201, res.get_json()
        return test_client
    return _make


@pytest.fixture()
def alice(login_client):
    return login_client('alice')


@pytest.fixture()
def bob(login_client):
    return login_client('bob')


@pytest.fixture()
def cara(login_client):
    return login_client('cara')


@pytest.fixture()
def users(app_ctx):
    from sketchguess.models import User
    created = []
    for name in ('alice', 'bob', 'cara'):
        user = User(username=name, display_name=name.title())
        user.set_password('password')
        db.session.add(user)
        created.append(user)
    db.session.commit()
    return created


@pytest.fixture()
def room(users):
    """A waiting room hosted by alice with bob and cara joined, in that order."""
    from sketchguess.services.games import coordinator, roster
    alice_user, bob_user, cara_user = users
    new_room = coordinator.create_room(alice_user, {})
    roster.join(new_room, bob_user)
    roster.join(new_room, cara_user)
    db.session.commit()
    return new_room


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


@pytest.fixture()
def expire_round(flask_app):
    """Move a room's round start back so the server sees its deadline as passed."""
    def _expire(room_code):
        from sketchguess.models import Room, now_ms
        with flask_app.app_context():
            room = Room.query.filter_by(room_code=room_code.upper()).one()
            room.round_started_at_ms = now_ms() - (room.round_duration + 1) * 1000
            db.session.commit()
    return _expire
