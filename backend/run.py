from bingo_client import create_app, socketio, get_engine
from bingo_client.remote import RemoteLink
from bingo_client.socketio_events import publish_ui_updates
from bingo_client.timer_pump import start_timer_pump

app = create_app()

if __name__ == '__main__':
    engine = get_engine(app)
    if app.config.get('REMOTE_URL'):
        link = RemoteLink(
            engine,
            app.config['REMOTE_URL'],
            max_retries=app.config['RECONNECT_MAX_RETRIES'],
            on_activity=publish_ui_updates,
        )
        link.connect()
    else:
        app.logger.warning('BINGO_REMOTE_URL is not set; running without a game authority')
    start_timer_pump(app)
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True, use_reloader=False)
