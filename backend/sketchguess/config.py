import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///sketchguess.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
    ).split(',') if o.strip()]
    # Room defaults
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '60'))
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '3'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    DEFAULT_DIFFICULTY = os.environ.get('DEFAULT_DIFFICULTY', 'medium')
    DEFAULT_WORD = os.environ.get('DEFAULT_WORD', 'cat')
    # Pause between a correct guess and the automatic round advance (seconds)
    CELEBRATION_DELAY_SEC = float(os.environ.get('CELEBRATION_DELAY_SEC', '3'))
    # Scoring
    SCORE_BASE = int(os.environ.get('SCORE_BASE', '100'))
    SCORE_BONUS_CAP = int(os.environ.get('SCORE_BONUS_CAP', '50'))
    SCORE_MIN = int(os.environ.get('SCORE_MIN', '50'))
    # Chat history returned per reload
    MESSAGE_HISTORY_LIMIT = int(os.environ.get('MESSAGE_HISTORY_LIMIT', '50'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
