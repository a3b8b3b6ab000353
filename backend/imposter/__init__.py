from flask import Flask, current_app
from flask_cors import CORS
from flask_login import LoginManager
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix
from config import Config

login_manager = LoginManager()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    # Player page, overlay and the no-access page are plain static files served from the root
    flask_app = Flask(__name__, static_folder=getattr(config_class, 'STATIC_FOLDER', None), static_url_path='')
    flask_app.config.from_object(config_class)
    if flask_app.config.get('TRUST_PROXY'):
        flask_app.wsgi_app = ProxyFix(flask_app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    login_manager.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        ping_timeout=flask_app.config.get('SOCKETIO_PING_TIMEOUT', 60),
        ping_interval=flask_app.config.get('SOCKETIO_PING_INTERVAL', 25),
    )

    # One game session per app, owned by the connection-handling layer
    from imposter.gateway import Gateway
    from imposter.models import UserStore
    from imposter.services.games import AccessGate, RoundEngine
    from imposter.session import GameSession
    from imposter.auth import TwitchIdentityProvider

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    access_gate = AccessGate(
        flask_app.config.get('ADMIN_USER', ''),
        flask_app.config.get('ACCESS_LIST') or [],
        enabled=flask_app.config.get('ACCESS_GATE_ENABLED', True),
    )
    flask_app.extensions['game_session'] = GameSession(
        Gateway(socketio, namespace=namespace),
        access_gate,
        rounds=RoundEngine(default_role_count=flask_app.config.get('DEFAULT_SPECIAL_ROLE_COUNT', 1)),
        logger=flask_app.logger,
        summary_visibility=flask_app.config.get('ROUND_SUMMARY_VISIBILITY', 'moderator'),
        require_admin=flask_app.config.get('MODERATOR_COMMANDS_REQUIRE_ADMIN', True),
    )
    flask_app.extensions['user_store'] = UserStore()
    flask_app.extensions['identity_provider'] = TwitchIdentityProvider(
        flask_app.config.get('TWITCH_CLIENT_ID'),
        flask_app.config.get('TWITCH_CLIENT_SECRET'),
        flask_app.config.get('CALLBACK_URL'),
    )

    # Import and register blueprints here
    from imposter.main import main
    flask_app.register_blueprint(main)

    from imposter.auth import auth
    flask_app.register_blueprint(auth)

    # Register Socket.IO event handlers
    from imposter.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @login_manager.user_loader
    def load_user(user_id):
        return current_app.extensions['user_store'].get(user_id)

    return flask_app
