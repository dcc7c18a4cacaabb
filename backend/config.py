import os


def _origins(raw):
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///livequiz.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Browser origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = _origins(os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000',
    ))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Digits in a room code
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Time limit used for scoring when a question has none (ms)
    DEFAULT_TIME_LIMIT_MS = int(os.environ.get('DEFAULT_TIME_LIMIT_MS', '75000'))
    # Ask clients to show the leaderboard after every Nth question. 0 disables.
    LEADERBOARD_EVERY = int(os.environ.get('LEADERBOARD_EVERY', '5'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
