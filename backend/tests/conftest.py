import os
import sys
import pytest

# Ensure the backend root (containing the `livequiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from livequiz import create_app, db, socketio
from livequiz.services.quiz.questions import parse_question
from livequiz.services.quiz.session import RoomRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/ws'
    ROOM_CODE_LENGTH = 6
    DEFAULT_TIME_LIMIT_MS = 75000
    LEADERBOARD_EVERY = 5
    LOG_LEVEL = 'DEBUG'


class FakeClock:
    """Monotonic milliseconds under test control."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def tick(self, ms):
        self.now += ms


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def rooms(clock):
    return RoomRegistry(clock=clock)


@pytest.fixture()
def two_questions():
    return [
        parse_question({
            'id': 1,
            'question_type': 'single',
            'question_text': 'Which surface controls roll?',
            'options': '["Elevator", "Aileron", "Rudder"]',
            'correct_answer': '1',
            'explanation': 'Ailerons roll the aircraft.',
        }),
        parse_question({
            'id': 2,
            'question_type': 'short',
            'question_text': 'Expand ILS.',
            'correct_answer': '["Instrument Landing System"]',
            'explanation': 'Instrument Landing System.',
            'time_limit': 30,
        }),
    ]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import livequiz.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def demo_quiz(flask_app):
    from livequiz.seed import seed_demo_data
    return seed_demo_data()


@pytest.fixture()
def instructor_client(flask_app, demo_quiz):
    from livequiz.seed import DEMO_INSTRUCTOR
    test_client = flask_app.test_client()
    username, password = DEMO_INSTRUCTOR
    res = test_client.post('/api/instructor/login', json={'username': username, 'password': password})
    assert res.status_code == 200
    return test_client


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


@pytest.fixture()
def host_client(flask_app, instructor_client):
    """Socket.IO client carrying the logged-in instructor's session cookie."""
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=instructor_client,
        namespace='/ws'
    )
    test_client.get_received('/ws')
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
