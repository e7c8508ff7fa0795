import os


def _flag(name, default):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ALLOWED_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    # Secret code shape
    CODE_LENGTH = int(os.environ.get('CODE_LENGTH', '4'))
    CODE_ALPHABET = os.environ.get('CODE_ALPHABET', '0123456789')
    # 9 counts down to 0, so a fresh code gets 10 rounds
    INITIAL_TURNS = int(os.environ.get('INITIAL_TURNS', '9'))
    # Broadcast the secret code on start/reset (debug aid, on by default)
    DEBUG_REVEAL_CODE = _flag('DEBUG_REVEAL_CODE', 'true')
    # Upper bound between matchmaker passes (seconds); enqueueing wakes it early
    MATCHMAKER_INTERVAL_SEC = float(os.environ.get('MATCHMAKER_INTERVAL_SEC', '1.0'))
    # Secret code source: 'random_org' (falls back to local) or 'local'
    CODE_SOURCE = os.environ.get('CODE_SOURCE', 'random_org')
    RANDOM_ORG_URL = os.environ.get('RANDOM_ORG_URL', 'https://www.random.org/integers/')
    RANDOM_ORG_TIMEOUT_SEC = float(os.environ.get('RANDOM_ORG_TIMEOUT_SEC', '3'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
