from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One session per process: the map is generated here and never again
    from hideseek.models import GameSession
    from hideseek.transport import Transport
    from hideseek.services.games.liveness import LivenessMonitor
    session = GameSession.from_config(flask_app.config)
    transport = Transport(socketio, namespace)
    monitor = LivenessMonitor(flask_app, session, transport)
    flask_app.extensions['game_session'] = session
    flask_app.extensions['game_transport'] = transport
    flask_app.extensions['liveness_monitor'] = monitor

    from hideseek.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from hideseek.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    flask_app.logger.info(
        f"[session-init] map={session.size}x{session.size} spawn={session.spawn} namespace={namespace}"
    )

    if not flask_app.config.get('TESTING') or flask_app.config.get('ENABLE_LIVENESS_IN_TESTS'):
        monitor.start()

    return flask_app
