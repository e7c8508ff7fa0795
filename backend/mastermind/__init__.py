from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from mastermind.routes import main
    flask_app.register_blueprint(main)

    from mastermind.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Match state lives for the life of the process, one coordinator per app
    from mastermind.services.games import MatchCoordinator
    from mastermind.services.games.broadcast import Broadcaster, socketio_sender
    from mastermind.services.games.codes import build_code_generator

    broadcaster = Broadcaster(socketio_sender(socketio, namespace='/ws'), logger=flask_app.logger)
    coordinator = MatchCoordinator.from_config(
        flask_app.config,
        broadcaster,
        build_code_generator(flask_app.config, logger=flask_app.logger),
        logger=flask_app.logger,
    )
    flask_app.extensions['mastermind'] = coordinator

    from mastermind.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Tests drive the matchmaker by hand via match_pending()
    if not flask_app.config.get('TESTING'):
        coordinator.start(socketio.start_background_task)
        flask_app.logger.info("[startup] matchmaker started")

    return flask_app
