from datetime import datetime, timezone

from kneading import db


def _utcnow():
    # Naive UTC, as stored by the leaderboard gateway
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ScoreEntry(db.Model):
    __tablename__ = 'score_entry'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0, index=True)
    nickname = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        # Contact details stay server side
        return {
            'id': self.id,
            'nickname': self.nickname,
            'score': self.score,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
