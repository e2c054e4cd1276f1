from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ..config.database import get_db
from ..core.security import TokenUser, get_current_user
from ..models.leaderboard import LeaderboardEntryCreate, LeaderboardEntryResponse
from ..models.note import SuccessResponse
from ..services.leaderboard_service import LeaderboardService

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("", response_model=List[LeaderboardEntryResponse])
def get_leaderboard(subject: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Top quiz scores, optionally for one subject (at most 50 entries)"""
    return LeaderboardService(db).list_top(subject or None)


@router.post("", response_model=SuccessResponse)
def submit_score(
    entry: LeaderboardEntryCreate,
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    LeaderboardService(db).record_attempt(current_user.id, entry.subject, entry.score, entry.total)
    return {"success": True}
