import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of allowed origins, or '*'
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Request bodies above this size are rejected with 413
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', '1000000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Battle rooms
    BATTLE_MAX_PLAYERS = int(os.environ.get('BATTLE_MAX_PLAYERS', '24'))
    BATTLE_NEXT_ROUND_DELAY_MS = int(os.environ.get('BATTLE_NEXT_ROUND_DELAY_MS', '3000'))
    # Idle rooms without players are dropped after this long (seconds)
    BATTLE_EMPTY_ROOM_TTL_SEC = int(os.environ.get('BATTLE_EMPTY_ROOM_TTL_SEC', '600'))
    # Any room idle this long is dropped, players or not (seconds)
    BATTLE_ROOM_TTL_SEC = int(os.environ.get('BATTLE_ROOM_TTL_SEC', '21600'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
