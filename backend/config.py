import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///bingo_client.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Game authority (Socket.IO). Empty disables the remote link.
    REMOTE_URL = os.environ.get('BINGO_REMOTE_URL', '')
    PLAYER_ID = os.environ.get('BINGO_PLAYER_ID', 'demo_user')
    # Administratively valid card numbers
    CARD_NUMBER_MIN = int(os.environ.get('CARD_NUMBER_MIN', '1'))
    CARD_NUMBER_MAX = int(os.environ.get('CARD_NUMBER_MAX', '400'))
    # Called numbers shown in the history strip; the full ledger is kept regardless
    CALLED_NUMBERS_DISPLAY_LIMIT = int(os.environ.get('CALLED_NUMBERS_DISPLAY_LIMIT', '50'))
    # Cosmetic estimate between calls (seconds)
    NEXT_CALL_ESTIMATE_SEC = int(os.environ.get('NEXT_CALL_ESTIMATE_SEC', '5'))
    # Timer pump resolution (ms)
    TIMER_TICK_MS = int(os.environ.get('TIMER_TICK_MS', '250'))
    RECONNECT_MAX_RETRIES = int(os.environ.get('RECONNECT_MAX_RETRIES', '5'))
    DEFAULT_BET_AMOUNT = float(os.environ.get('DEFAULT_BET_AMOUNT', '10'))
