import os


def _env_list(name, default=''):
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(',') if item.strip()]


def _env_flag(name, default='1'):
    return os.environ.get(name, default).strip().lower() not in ('0', 'false', 'no', 'off', '')


class Config:
    SECRET_KEY = os.environ.get('SESSION_SECRET') or 'you-will-never-guess'
    PORT = int(os.environ.get('PORT', '3000'))
    # Running behind a reverse proxy (X-Forwarded-* headers)
    TRUST_PROXY = _env_flag('TRUST_PROXY', '1')
    # Login name (case-insensitive) of the moderator/administrator identity
    ADMIN_USER = os.environ.get('ADMIN_USER', 'schmilley')
    # Seed for the in-memory access list (comma separated names)
    ACCESS_LIST = _env_list('ACCESS_LIST')
    ACCESS_GATE_ENABLED = _env_flag('ACCESS_GATE_ENABLED', '1')
    MODERATOR_COMMANDS_REQUIRE_ADMIN = _env_flag('MODERATOR_COMMANDS_REQUIRE_ADMIN', '1')
    # Grace period before a dropped connection's participant is removed (seconds). 0 removes immediately.
    DISCONNECT_GRACE_SEC = float(os.environ.get('DISCONNECT_GRACE_SEC', '5'))
    # 'moderator' sends the round summary to moderator connections and the initiator; 'broadcast' to everyone
    ROUND_SUMMARY_VISIBILITY = os.environ.get('ROUND_SUMMARY_VISIBILITY', 'moderator')
    DEFAULT_SPECIAL_ROLE_COUNT = int(os.environ.get('DEFAULT_SPECIAL_ROLE_COUNT', '1'))
    # Socket.IO transport
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    SOCKETIO_PING_TIMEOUT = int(os.environ.get('SOCKETIO_PING_TIMEOUT', '60'))
    SOCKETIO_PING_INTERVAL = int(os.environ.get('SOCKETIO_PING_INTERVAL', '25'))
    CORS_ORIGINS = _env_list('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000')
    # Display clients (player page, overlay, no-access page) and the moderator console
    STATIC_FOLDER = os.environ.get('STATIC_FOLDER', os.path.abspath('public'))
    PRIVATE_FOLDER = os.environ.get('PRIVATE_FOLDER', os.path.abspath('private'))
    # Identity provider (Twitch OAuth)
    TWITCH_CLIENT_ID = os.environ.get('TWITCH_CLIENT_ID', '')
    TWITCH_CLIENT_SECRET = os.environ.get('TWITCH_CLIENT_SECRET', '')
    CALLBACK_URL = os.environ.get('CALLBACK_URL', 'http://localhost:3000/auth/twitch/callback')
