from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..config.database import get_db
from ..core.errors import ValidationError
from ..core.security import TokenUser, get_current_user, get_optional_user
from ..models.note import (
    CommentCreate, LikeResponse, NoteCreatedResponse, NoteDetailResponse,
    NoteResponse, RatingRequest, SuccessResponse,
)
from ..services.note_service import NoteService
from ..services.query import NoteFilters, SortMode
from ..services.user_service import UserService
from ..utils.file_utils import FileStorage, get_file_storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/notes",
    tags=["notes"]
)


def parse_semester(value: Optional[str]) -> Optional[int]:
    """Blank means no semester; anything else must be an integer"""
    if value is None or not str(value).strip():
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError("Semester must be a number")


@router.get("", response_model=List[NoteResponse])
def list_notes(
    search: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    course: Optional[str] = Query(None),
    subject: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Browse notes with free-text search, exact filters and a sort mode"""
    filters = NoteFilters(
        search=search or None,
        course=course or None,
        subject=subject or None,
        semester=parse_semester(semester),
        sort=SortMode.parse(sort),
    )
    return NoteService(db).list_notes(filters)


@router.post("", response_model=NoteCreatedResponse)
def upload_note(
    title: str = Form(...),
    course: str = Form(...),
    subject: str = Form(...),
    semester: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: TokenUser = Depends(get_current_user),
    storage: FileStorage = Depends(get_file_storage),
    db: Session = Depends(get_db),
):
    """Upload a note file with its course metadata"""
    semester_value = parse_semester(semester)
    # A signed token can outlive its account; check before writing the file
    UserService(db).get_user(current_user.id)

    stored = storage.save(file)
    try:
        note_id = NoteService(db).create_note(
            owner_id=current_user.id,
            course=course,
            title=title,
            subject=subject,
            semester=semester_value,
            description=description,
            file_ref=stored.file_ref,
            file_type=stored.file_type,
        )
    except Exception:
        storage.delete(stored.file_ref)
        raise
    return {"id": note_id}


@router.get("/{note_id}", response_model=NoteDetailResponse)
def get_note(
    note_id: int,
    viewer: Optional[TokenUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Single note with aggregates and comments, plus the caller's like and rating when signed in"""
    return NoteService(db).get_note(note_id, viewer_id=viewer.id if viewer else None)


@router.post("/{note_id}/rate", response_model=SuccessResponse)
def rate_note(
    note_id: int,
    body: RatingRequest,
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    NoteService(db).rate(current_user.id, note_id, body.rating)
    return {"success": True}


@router.post("/{note_id}/like", response_model=LikeResponse)
def like_note(
    note_id: int,
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Like the note, or unlike it if already liked"""
    liked = NoteService(db).toggle_like(current_user.id, note_id)
    return {"liked": liked}


@router.post("/{note_id}/comment", response_model=NoteCreatedResponse)
def comment_on_note(
    note_id: int,
    body: CommentCreate,
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment_id = NoteService(db).add_comment(current_user.id, note_id, body.content)
    return {"id": comment_id}


@router.get("/{note_id}/download")
def download_note(
    note_id: int,
    storage: FileStorage = Depends(get_file_storage),
    db: Session = Depends(get_db),
):
    """Stream the note file and count the download"""
    file_ref, download_name = NoteService(db).record_download(note_id, check_file=storage.path_for)
    path = storage.path_for(file_ref)
    logger.info(f"Note {note_id} downloaded as '{download_name}'")
    return FileResponse(path, filename=download_name)
