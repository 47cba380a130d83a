import os
import sys
import pytest

# Ensure the backend root (containing the `bingo_client` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bingo_client import create_app, db, socketio, get_engine
from bingo_client.services.game import ClientEngine
from bingo_client.storage import MemoryBlobStore


PLAYER_ID = 'player-1'
T0 = 1_700_000_000.0


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PLAYER_ID = PLAYER_ID
    CARD_NUMBER_MIN = 1
    CARD_NUMBER_MAX = 400


class ManualClock:
    """Wall clock that only moves when a test says so."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def ms(timestamp: float) -> int:
    return int(round(timestamp * 1000))


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def store():
    return MemoryBlobStore()


@pytest.fixture()
def engine(store, clock):
    return ClientEngine(store=store, player_id=PLAYER_ID, clock=clock)


class RoundDriver:
    """Feeds an engine the remote events of a normal round."""

    def __init__(self, engine, clock):
        self.engine = engine
        self.clock = clock
        self.call_number = 0

    def open_selection(self, game_id='G-1', duration=30):
        self.engine.receive('cardSelectionStarted', {
            'nextGameId': game_id,
            'duration': duration,
            'endsAt': ms(self.clock() + duration),
        })

    def start(self, game_id='G-1', card_number=77, prize_pool=100):
        self.open_selection(game_id)
        if card_number is not None:
            self.engine.select_card(card_number)
        self.engine.receive('gameCountdown', {'seconds': 3, 'message': 'Get ready'})
        self.engine.receive('gameStarted', {'gameId': game_id, 'prizePool': prize_pool, 'duration': 300})
        self.engine.drain_outbound()
        self.engine.drain_ui_updates()

    def call(self, number, call_number=None):
        if call_number is None:
            call_number = self.call_number + 1
        self.call_number = max(self.call_number, call_number)
        self.engine.receive('numberCalled', {'number': number, 'callNumber': call_number})


@pytest.fixture()
def driver(engine, clock):
    return RoundDriver(engine, clock)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        application.extensions.pop('bingo_engine', None)
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def app_engine(flask_app):
    return get_engine(flask_app)


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
