import os
import sys
import pytest

# Ensure the backend root (containing the `quiz_arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quiz_arena import create_app, socketio
from quiz_arena.models import QuizQuestion
from quiz_arena.services.rooms import RoomStateMachine, RoomStore
from quiz_arena.services.rooms.scheduler import TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/'
    LOG_LEVEL = 'DEBUG'
    OPENROUTER_API_KEY = None
    QUESTION_COUNT = 50
    QUESTION_TOPIC = 'общие знания'
    REVEAL_DELAY_SEC = 3
    POINTS_PER_CORRECT = 10
    MAX_NAME_LENGTH = 32


def make_questions(count=50):
    return [
        QuizQuestion(
            question=f'Вопрос {i}?',
            options=(f'A{i}', f'B{i}', f'C{i}', f'D{i}'),
            correct_answer=f'B{i}',
        )
        for i in range(1, count + 1)
    ]


class FakeProvider:
    def __init__(self, questions=None, on_fetch=None):
        self.questions = make_questions() if questions is None else questions
        self.on_fetch = on_fetch
        self.topics = []

    def fetch(self, topic):
        self.topics.append(topic)
        if self.on_fetch:
            self.on_fetch()
        return list(self.questions)


class ManualScheduler:
    """Collects timers; tests fire them explicitly."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, key, delay, callback):
        handle = TimerHandle(key, delay)
        self.scheduled.append((handle, callback))
        return handle

    @property
    def pending(self):
        return [h for h, _ in self.scheduled if not h.cancelled]

    def fire_all(self):
        scheduled, self.scheduled = self.scheduled, []
        for handle, callback in scheduled:
            if not handle.cancelled:
                callback()


class RecordingEvents:
    def __init__(self):
        self.emitted = []
        self.sessions = {}
        self.closed = []

    def emit(self, event, data=None, to=None):
        self.emitted.append((event, data, to))

    def subscribe(self, sid, room_id):
        self.sessions[sid] = room_id

    def unsubscribe(self, sid, room_id):
        if self.sessions.get(sid) == room_id:
            del self.sessions[sid]

    def close_room(self, room_id):
        self.closed.append(room_id)
        for sid in [s for s, r in self.sessions.items() if r == room_id]:
            del self.sessions[sid]

    def named(self, event):
        return [(data, to) for name, data, to in self.emitted if name == event]

    def last(self, event):
        found = self.named(event)
        return found[-1] if found else (None, None)


@pytest.fixture()
def provider():
    return FakeProvider()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def events():
    return RecordingEvents()


@pytest.fixture()
def store():
    return RoomStore()


@pytest.fixture()
def machine(store, provider, scheduler, events):
    return RoomStateMachine(store, provider, scheduler, events, topic='общие знания')


@pytest.fixture()
def flask_app(provider, scheduler):
    application = create_app(TestConfig, question_provider=provider, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


def received(test_client, name=None):
    """Drain a test client's queue, optionally keeping one event name."""
    packets = test_client.get_received()
    if name is None:
        return packets
    return [p['args'][0] if p['args'] else None for p in packets if p['name'] == name]
