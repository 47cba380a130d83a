from bingo_client import socketio, get_engine
from bingo_client.socketio_events import publish_ui_updates

_running = set()


def start_timer_pump(app) -> bool:
    """Tick the engine's cosmetic timers in a Socket.IO background task.

    - No-ops in TESTING mode (tests drive ``engine.tick`` with a manual clock)
    - One pump per app
    - Every tick publishes whatever UI commands the engine queued
    """
    if app.config.get('TESTING'):
        return False
    if id(app) in _running:
        app.logger.info("[timer-pump] already running")
        return False
    _running.add(id(app))
    interval = max(10, int(app.config.get('TIMER_TICK_MS', 250))) / 1000.0

    def _worker():
        engine = get_engine(app)
        app.logger.info(f"[timer-pump] started interval={interval}s")
        while id(app) in _running:
            socketio.sleep(interval)
            engine.tick()
            publish_ui_updates(engine)

    socketio.start_background_task(_worker)
    return True


def stop_timer_pump(app) -> None:
    _running.discard(id(app))
