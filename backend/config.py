import os

_DEFAULT_ORIGINS = (
    "http://localhost:5173,http://127.0.0.1:5173,"
    "http://localhost:5174,http://127.0.0.1:5174"
)


def _optional_int(name):
    value = os.environ.get(name)
    return int(value) if value not in (None, '') else None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', _DEFAULT_ORIGINS).split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Map generation (once per process)
    MAP_SIZE = int(os.environ.get('MAP_SIZE', '20'))
    WALL_PROBABILITY = float(os.environ.get('WALL_PROBABILITY', '0.2'))
    MAP_SEED = _optional_int('MAP_SEED')
    SPAWN_X = int(os.environ.get('SPAWN_X', '1'))
    SPAWN_Y = int(os.environ.get('SPAWN_Y', '1'))
    # Liveness sweep period (seconds)
    LIVENESS_INTERVAL_SEC = float(os.environ.get('LIVENESS_INTERVAL_SEC', '5'))
    # Evict participants idle longer than this (seconds). 0 disables.
    # Only enable for clients that emit 'heartbeat'; the web client sends moves alone.
    IDLE_TIMEOUT_SEC = float(os.environ.get('IDLE_TIMEOUT_SEC', '0'))
    # Optional: shared secret for POST /admin/reset
    ADMIN_TOKEN = os.environ.get('ADMIN_TOKEN') or None
