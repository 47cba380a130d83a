from flask_socketio import emit
from bingo_client import socketio, get_engine

NAMESPACE = '/ws'


def publish_ui_updates(engine) -> int:
    """Push queued engine UI commands to every presentation client."""
    commands = engine.drain_ui_updates()
    for command in commands:
        socketio.emit('ui_update', command.to_dict(), namespace=NAMESPACE)
    return len(commands)


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {NAMESPACE}', 'state': get_engine().snapshot()})


def handle_get_state(data=None):
    emit('state', get_engine().snapshot())


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register presentation-side Socket.IO handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('get_state', handle_get_state, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('get_state', handle_get_state, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
