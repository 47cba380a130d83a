from bingo_client.remote import RemoteLink
from bingo_client.services.game import GamePhase


class FakeSocketClient:
    """Stands in for ``socketio.Client``: records handlers and emits."""

    def __init__(self):
        self.handlers = {}
        self.emitted = []
        self.connected = False

    def on(self, event, handler):
        self.handlers[event] = handler

    def emit(self, event, data=None):
        self.emitted.append((event, data))

    def connect(self, url, **kwargs):
        self.connected = True
        self.handlers['connect']()

    def disconnect(self):
        self.connected = False
        self.handlers['disconnect']('client disconnect')

    def fire(self, event, *args):
        self.handlers[event](*args)


def _link(engine, activity=None):
    fake = FakeSocketClient()
    link = RemoteLink(engine, 'http://authority.test', client=fake,
                      on_activity=(lambda e: activity.append(e)) if activity is not None else None)
    return link, fake


def test_connect_requests_snapshot(engine):
    link, fake = _link(engine)
    link.connect()
    assert fake.emitted == [('getGameState', {})]
    assert engine.reconnect.awaiting_snapshot


def test_relays_authority_events(engine):
    activity = []
    link, fake = _link(engine, activity)
    link.connect()
    fake.fire('gameState', {'phase': 'idle'})
    fake.fire('cardSelectionStarted', {'nextGameId': 'G-3', 'duration': 30, 'endsAt': 1_700_000_030_000})
    assert engine.phase == GamePhase.CARD_SELECTION
    assert len(activity) == 3


def test_user_intents_are_emitted(engine):
    link, fake = _link(engine)
    link.connect()
    fake.fire('gameState', {'phase': 'card_selection', 'activeGame': {'gameId': 'G-4', 'endsAt': 1_700_000_030_000}})
    fake.emitted.clear()
    engine.select_card(42)
    assert fake.emitted == [('selectCard', {'cardNumber': 42, 'gameId': 'G-4'})]


def test_intents_dropped_while_disconnected(engine):
    link, fake = _link(engine)
    assert link.flush() == 0
    engine.join_game(5)
    assert fake.emitted == []
    assert engine.drain_outbound() == []


def test_lifecycle_events(engine):
    link, fake = _link(engine)
    link.connect()
    fake.fire('gameState', {'phase': 'idle'})
    fake.connected = False
    fake.fire('disconnect', 'transport close')
    assert engine.snapshot()['connection'] == 'reconnecting'
    for _ in range(5):
        fake.fire('connect_error', {'message': 'refused'})
    assert engine.snapshot()['connection'] == 'offline'


def test_connect_error_before_first_connect_is_not_a_retry(engine):
    link, fake = _link(engine)
    fake.fire('connect_error', {'message': 'refused'})
    assert engine.reconnect.attempts == 0
    assert engine.snapshot()['connection'] == 'connected'


def test_handlers_registered_for_every_authority_event(engine):
    _, fake = _link(engine)
    for name in ('gameState', 'numberCalled', 'gameEnded', 'bingoClaimed', 'claimRejected', 'error'):
        assert name in fake.handlers
    assert 'reconnect' not in fake.handlers
