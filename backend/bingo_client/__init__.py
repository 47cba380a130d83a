from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import logging
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

ENGINE_KEY = 'bingo_engine'


def get_engine(app=None):
    """Return the app's ClientEngine, building it on first use.

    Building is deferred because loading settings and stats needs the
    ``client_blobs`` table to exist.
    """
    app = app or current_app._get_current_object()
    engine = app.extensions.get(ENGINE_KEY)
    if engine is None:
        from bingo_client.services.game import ClientEngine
        from bingo_client.storage import SqlBlobStore
        engine = ClientEngine.from_config(app.config, store=SqlBlobStore(app))
        app.extensions[ENGINE_KEY] = engine
    return engine


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    logging.getLogger(__name__).setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Ensure models are registered with SQLAlchemy metadata
    from bingo_client import models  # noqa: F401

    from bingo_client.api.client import client_api
    flask_app.register_blueprint(client_api, url_prefix='/api/client')

    from bingo_client.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('show-card')
    @click.argument('card_number', type=int)
    def show_card_command(card_number):
        """Print the grid derived from a card number."""
        from bingo_client.services.game import CardGenerator, LETTERS, FREE
        from bingo_client.services.game.errors import InvalidCardNumber
        generator = CardGenerator(flask_app.config.get('CARD_NUMBER_MIN', 1), flask_app.config.get('CARD_NUMBER_MAX', 400))
        try:
            card = generator.generate(card_number)
        except InvalidCardNumber as exc:
            raise click.BadParameter(str(exc))
        click.echo(f"Card #{card.card_number}")
        click.echo('  '.join(f"{letter:>4}" for letter in LETTERS))
        for row in card.rows:
            click.echo('  '.join('FREE' if n == FREE else f"{n:>4}" for n in row))
        click.echo(f"fingerprint {card.fingerprint()}")

    @click.command('reset-stats')
    def reset_stats_command():
        """Zero the persisted player statistics."""
        with flask_app.app_context():
            get_engine(flask_app).reset_stats()
        click.echo('Player stats have been reset.')

    flask_app.cli.add_command(show_card_command)
    flask_app.cli.add_command(reset_stats_command)

    return flask_app
