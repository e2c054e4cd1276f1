from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from ..config.database import get_db
from ..core.security import TokenUser, get_current_user
from ..models.user import AuthResponse, ProfileResponse, UserCreate, UserLogin
from ..services.note_service import NoteService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", response_model=AuthResponse)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user and log them in"""
    user, token = UserService(db).register(user_data)
    return {"token": token, "user": user}


@router.post("/login", response_model=AuthResponse)
def login(login_data: UserLogin, db: Session = Depends(get_db)):
    """Exchange email and password for a session token"""
    user, token = UserService(db).login(login_data.email, login_data.password)
    return {"token": token, "user": user}


@router.get("/profile", response_model=ProfileResponse)
def profile(current_user: TokenUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """The caller's account and the notes they uploaded"""
    user = UserService(db).get_user(current_user.id)
    notes = NoteService(db).list_user_notes(current_user.id)
    return {"user": user, "notes": notes}
