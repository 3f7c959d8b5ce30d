from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from kneading import db
from kneading.models import ScoreEntry


@dataclass
class LeaderboardEntry:
    nickname: str
    score: int

    def to_dict(self):
        return {'nickname': self.nickname, 'score': self.score}


@dataclass
class ScoreSubmission:
    name: str
    phone: str
    email: str
    score: int
    nickname: str
    timestamp: float

    def to_dict(self):
        return {
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'score': self.score,
            'nickname': self.nickname,
            'timestamp': self.timestamp,
        }


class GatewayError(Exception):
    """The leaderboard store could not complete an insert or a query."""


class LeaderboardGateway(ABC):
    @abstractmethod
    def fetch_top(self, n: int) -> List[LeaderboardEntry]:
        """Best ``n`` entries, highest score first, ties in arrival order."""

    @abstractmethod
    def insert(self, submission: ScoreSubmission) -> LeaderboardEntry:
        """Store one score. Raises GatewayError on failure."""


class SqlLeaderboardGateway(LeaderboardGateway):
    """Leaderboard store backed by the ``score_entry`` table.

    Each call opens its own app context so it can run from a background task.
    """

    def __init__(self, app):
        self.app = app

    def fetch_top(self, n: int) -> List[LeaderboardEntry]:
        with self.app.app_context():
            try:
                rows = (
                    ScoreEntry.query
                    .order_by(ScoreEntry.score.desc(), ScoreEntry.id.asc())
                    .limit(n)
                    .all()
                )
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise GatewayError(f"fetch_top({n}) failed: {exc}") from exc
            return [LeaderboardEntry(nickname=r.nickname, score=r.score) for r in rows]

    def insert(self, submission: ScoreSubmission) -> LeaderboardEntry:
        created_at = datetime.fromtimestamp(submission.timestamp, tz=timezone.utc).replace(tzinfo=None)
        with self.app.app_context():
            entry = ScoreEntry(
                name=submission.name,
                phone=submission.phone,
                email=submission.email,
                score=submission.score,
                nickname=submission.nickname,
                created_at=created_at,
            )
            try:
                db.session.add(entry)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise GatewayError(f"insert failed: {exc}") from exc
            return LeaderboardEntry(nickname=entry.nickname, score=entry.score)
