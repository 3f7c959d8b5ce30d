"""Scenes and the state each one carries.

The machine holds exactly one of the ``*State`` objects below; a scene's
fields exist only on its own state object, so there is no way to read a
countdown value while playing or a session while idling on Start.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional

from .session import EntryForm, Session


class Scene(Enum):
    START = 'start'
    LEADERBOARD = 'leaderboard'
    ENTRY = 'entry'
    COUNTDOWN = 'countdown'
    PLAY = 'play'
    RESULT = 'result'


class SubmissionStatus(Enum):
    PENDING = 'pending'
    SUBMITTED = 'submitted'
    FAILED = 'failed'


@dataclass
class StartState:
    scene: ClassVar[Scene] = Scene.START

    def to_dict(self):
        return {}


@dataclass
class LeaderboardState:
    scene: ClassVar[Scene] = Scene.LEADERBOARD

    def to_dict(self):
        return {}


@dataclass
class EntryState:
    scene: ClassVar[Scene] = Scene.ENTRY
    form: EntryForm = field(default_factory=EntryForm)
    error: Optional[str] = None

    def to_dict(self):
        return {'form': self.form.to_dict(), 'error': self.error}


@dataclass
class CountdownState:
    scene: ClassVar[Scene] = Scene.COUNTDOWN
    form: EntryForm
    session: Session
    ticks_remaining: int = 3

    def to_dict(self):
        return {'ticks_remaining': self.ticks_remaining}


@dataclass
class PlayState:
    scene: ClassVar[Scene] = Scene.PLAY
    form: EntryForm
    session: Session

    def to_dict(self):
        return {'session': self.session.to_dict()}


@dataclass
class ResultState:
    scene: ClassVar[Scene] = Scene.RESULT
    form: EntryForm
    session: Session
    nickname: Optional[str] = None
    submission: SubmissionStatus = SubmissionStatus.PENDING

    def to_dict(self):
        return {
            'session': self.session.to_dict(),
            'score': self.session.knead_count,
            'nickname': self.nickname,
            'submission': self.submission.value,
        }
