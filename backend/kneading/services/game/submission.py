"""Score submission: store the finished game, then refresh the leaderboard.

Both steps degrade instead of failing: a failed insert leaves the player's
own score on screen, a failed refresh keeps the last known list. Neither is
retried.
"""

from typing import List, Optional

from .leaderboard import GatewayError, LeaderboardEntry, LeaderboardGateway, ScoreSubmission
from .session import EntryForm, Session


def build_submission(form: EntryForm, session: Session, nickname: str, timestamp: float) -> ScoreSubmission:
    return ScoreSubmission(
        name=form.name.strip(),
        phone=form.phone.strip(),
        email=form.email.strip(),
        score=session.knead_count,
        nickname=nickname,
        timestamp=timestamp,
    )


def submit_score(gateway: LeaderboardGateway, submission: ScoreSubmission, logger) -> bool:
    try:
        gateway.insert(submission)
    except GatewayError as exc:
        logger.error(f"[submit-failed] nickname={submission.nickname!r} score={submission.score} error={exc}")
        return False
    logger.info(f"[submit] nickname={submission.nickname!r} score={submission.score}")
    return True


def fetch_leaderboard(gateway: LeaderboardGateway, limit: int, logger) -> Optional[List[LeaderboardEntry]]:
    """Top ``limit`` entries, or None when the store could not be reached."""
    try:
        return list(gateway.fetch_top(limit))
    except GatewayError as exc:
        logger.warning(f"[refresh-failed] limit={limit} error={exc}")
        return None
