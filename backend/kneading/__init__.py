from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

MACHINE_EXTENSION = 'kneading_machine'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from kneading.routes import main
    flask_app.register_blueprint(main)

    from kneading.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from kneading.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from kneading.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    machine = _build_machine(flask_app)
    flask_app.extensions[MACHINE_EXTENSION] = machine
    if flask_app.config.get('TIMER_BACKEND') == 'manual':
        machine.ensure_started()
    else:
        # Real timers start with the first request or screen connection, so
        # CLI commands never spin up background tasks
        @flask_app.before_request
        def _start_machine():
            machine.ensure_started()

    @click.command('leaderboard-reset')
    def leaderboard_reset_command():
        """Drops and recreates the leaderboard table."""
        import kneading.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Leaderboard has been reset!')

    @click.command('leaderboard-top')
    @click.option('--limit', type=int, default=None, help='Number of entries to show.')
    def leaderboard_top_command(limit):
        """Prints the best scores."""
        machine = get_machine(flask_app)
        entries = machine.gateway.fetch_top(limit or machine.settings.leaderboard_size)
        if not entries:
            click.echo('No scores yet.')
        for rank, entry in enumerate(entries, start=1):
            click.echo(f"{rank}. {entry.nickname}  {entry.score}")

    flask_app.cli.add_command(leaderboard_reset_command)
    flask_app.cli.add_command(leaderboard_top_command)

    return flask_app


def _build_machine(flask_app):
    from kneading.services.game import (
        GameSettings,
        ManualTimerService,
        SceneMachine,
        SocketIOTimerService,
        SqlLeaderboardGateway,
    )

    if flask_app.config.get('TIMER_BACKEND') == 'manual':
        timers = ManualTimerService(logger=flask_app.logger)
    else:
        timers = SocketIOTimerService(socketio, logger=flask_app.logger)

    machine = SceneMachine(
        timers,
        SqlLeaderboardGateway(flask_app),
        settings=GameSettings.from_config(flask_app.config),
        logger=flask_app.logger,
    )
    # Push every change to connected kiosk screens
    machine.add_listener(lambda event, payload: socketio.emit(event, payload, namespace='/ws'))
    return machine


def get_machine(flask_app=None):
    app = flask_app or current_app._get_current_object()
    return app.extensions[MACHINE_EXTENSION]
