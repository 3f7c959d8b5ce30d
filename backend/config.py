import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///kneading.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma separated list of frontend origins allowed by CORS and Socket.IO
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173').split(',')
    # Idle time before Start and Leaderboard swap (seconds)
    AUTO_SWITCH_SEC = int(os.environ.get('AUTO_SWITCH_SEC', '7'))
    # Countdown shown before play begins (ticks)
    COUNTDOWN_START = int(os.environ.get('COUNTDOWN_START', '3'))
    # Length of one game (seconds)
    GAME_DURATION_SEC = int(os.environ.get('GAME_DURATION_SEC', '10'))
    # Entries shown on the leaderboard and result screens
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '5'))
    # How long the client shows the kneading sprite after a tap (ms)
    FEEDBACK_PULSE_MS = int(os.environ.get('FEEDBACK_PULSE_MS', '150'))
    # 'socketio' runs real timers as background tasks; 'manual' waits for advance()
    TIMER_BACKEND = os.environ.get('TIMER_BACKEND', 'socketio')
