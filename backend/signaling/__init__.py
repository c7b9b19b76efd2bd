from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config
from signaling.services.sessions.router import ConnectionRouter

socketio = SocketIO(async_mode=None)
router = ConnectionRouter()


def _parse_origins(value):
    if isinstance(value, (list, tuple)):
        return list(value)
    if not value or value.strip() == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _parse_origins(flask_app.config.get('CORS_ORIGINS', '*'))
    namespace = flask_app.config.get('SIGNALING_NAMESPACE', '/')
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    def send(connection_id, event, payload=None):
        if payload is None:
            socketio.emit(event, to=connection_id, namespace=namespace)
        else:
            socketio.emit(event, payload, to=connection_id, namespace=namespace)

    router.init_app(flask_app, send=send)

    from signaling.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers against the initialized socketio instance
    from signaling.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    from signaling.services.sessions.reaper import start_idle_reaper
    start_idle_reaper(flask_app, router)

    return flask_app
