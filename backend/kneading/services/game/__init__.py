"""Game domain services: scenes, timers, tap counting and score submission.

This package holds the kiosk's game logic. HTTP routes and socket handlers
only translate requests into calls on ``SceneMachine``; nothing in here knows
about transports.
"""

from .leaderboard import (
    GatewayError,
    LeaderboardEntry,
    LeaderboardGateway,
    ScoreSubmission,
    SqlLeaderboardGateway,
)
from .machine import GameSettings, SceneMachine, WrongSceneError
from .nicknames import generate_nickname
from .scenes import Scene, SubmissionStatus
from .session import EntryForm, Session, register_tap
from .timers import ManualTimerService, SocketIOTimerService, TimerHandle, TimerService
