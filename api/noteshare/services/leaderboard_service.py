from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import List, Optional
import logging

from ..models.leaderboard import LeaderboardEntry, LeaderboardEntryResponse
from ..models.user import User
from ..config.settings import LEADERBOARD_LIMIT

logger = logging.getLogger(__name__)


class LeaderboardService:
    def __init__(self, db: Session):
        self.db = db

    def record_attempt(self, user_id: int, subject: str, score: int, total: int) -> int:
        """Store one finished quiz attempt; score is not checked against total"""
        entry = LeaderboardEntry(user_id=user_id, subject=subject, score=score, total=total)
        try:
            self.db.add(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {user_id} scored {score}/{total} in {subject}")
        return entry.id

    def list_top(self, subject: Optional[str] = None, limit: int = LEADERBOARD_LIMIT) -> List[LeaderboardEntryResponse]:
        """Best scores first; equal scores rank the earlier attempt higher"""
        limit = max(0, min(limit, LEADERBOARD_LIMIT))
        stmt = (
            select(LeaderboardEntry, User.name.label("user_name"))
            .join(User, LeaderboardEntry.user_id == User.id)
        )
        if subject:
            stmt = stmt.where(LeaderboardEntry.subject == subject)
        stmt = stmt.order_by(
            LeaderboardEntry.score.desc(),
            LeaderboardEntry.created_at.asc(),
            LeaderboardEntry.id.asc(),
        ).limit(limit)

        return [
            LeaderboardEntryResponse(
                id=entry.id,
                user_id=entry.user_id,
                subject=entry.subject,
                score=entry.score,
                total=entry.total,
                created_at=entry.created_at,
                user_name=user_name,
            )
            for entry, user_name in self.db.execute(stmt).all()
        ]
