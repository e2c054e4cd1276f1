from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from typing import Any, Callable, List, Optional, Tuple
import logging
import os

from ..models.note import (
    Comment, CommentResponse, Like, Note, NoteDetailResponse, NoteResponse, Rating,
)
from ..models.user import User
from ..core.errors import NotFoundError, ValidationError
from .query import NoteFilters, base_notes_query, build_notes_query, row_to_note

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class NoteService:
    def __init__(self, db: Session):
        self.db = db

    # ────────────────────────────────────────────────────────────────
    #  Notes
    # ────────────────────────────────────────────────────────────────
    def create_note(
        self,
        owner_id: int,
        course: str,
        title: str,
        subject: str,
        semester: Optional[int],
        description: Optional[str],
        file_ref: str,
        file_type: str,
    ) -> int:
        """Persist a note for an already stored file and return its id"""
        try:
            note = Note(
                user_id=owner_id,
                course=course,
                title=title,
                subject=subject,
                semester=semester,
                description=description,
                file_path=file_ref,
                file_type=file_type,
            )
            self.db.add(note)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {owner_id} uploaded note {note.id} ({file_ref})")
        return note.id

    def get_note(self, note_id: int, viewer_id: Optional[int] = None) -> NoteDetailResponse:
        """
        Note with aggregates and its comments, newest comment first.

        With a ``viewer_id`` the result also says whether that user liked
        the note and what they rated it; anonymous reads leave both unset.
        """
        row = self.db.execute(base_notes_query().where(Note.id == note_id)).first()
        if row is None:
            raise NotFoundError("Note not found")

        detail = NoteDetailResponse(
            **row_to_note(row).model_dump(), comments=self.list_comments(note_id)
        )
        if viewer_id is not None:
            detail.liked, detail.my_rating = self.viewer_state(viewer_id, note_id)
        return detail

    def viewer_state(self, user_id: int, note_id: int) -> Tuple[bool, Optional[int]]:
        liked = self.db.execute(
            select(Like.id).where(Like.user_id == user_id, Like.note_id == note_id)
        ).first() is not None
        my_rating = self.db.execute(
            select(Rating.rating).where(Rating.user_id == user_id, Rating.note_id == note_id)
        ).scalar_one_or_none()
        return liked, my_rating

    def list_notes(self, filters: NoteFilters) -> List[NoteResponse]:
        rows = self.db.execute(build_notes_query(filters)).all()
        return [row_to_note(row) for row in rows]

    def list_user_notes(self, user_id: int) -> List[NoteResponse]:
        stmt = (
            base_notes_query()
            .where(Note.user_id == user_id)
            .order_by(Note.created_at.desc(), Note.id.desc())
        )
        return [row_to_note(row) for row in self.db.execute(stmt).all()]

    def _require_note(self, note_id: int) -> None:
        exists = self.db.execute(select(Note.id).where(Note.id == note_id)).first()
        if exists is None:
            raise NotFoundError("Note not found")

    # ────────────────────────────────────────────────────────────────
    #  Social signals
    # ────────────────────────────────────────────────────────────────
    def _insert(self):
        if self.db.get_bind().dialect.name == "postgresql":
            return pg_insert
        return sqlite_insert

    def rate(self, user_id: int, note_id: int, score: int) -> None:
        """Set the user's rating for a note, replacing any earlier one"""
        if not isinstance(score, int) or not MIN_RATING <= score <= MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        self._require_note(note_id)

        stmt = self._insert()(Rating).values(user_id=user_id, note_id=note_id, rating=score)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Rating.user_id, Rating.note_id],
            set_={"rating": stmt.excluded.rating},
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug(f"User {user_id} rated note {note_id}: {score}")

    def toggle_like(self, user_id: int, note_id: int) -> bool:
        """
        Flip the like state for (user, note).

        Removes an existing like, otherwise adds one, inside one
        transaction. Returns the resulting state.
        """
        self._require_note(note_id)

        try:
            result = self.db.execute(
                delete(Like).where(Like.user_id == user_id, Like.note_id == note_id)
            )
            if result.rowcount:
                self.db.commit()
                return False

            self.db.add(Like(user_id=user_id, note_id=note_id))
            self.db.commit()
            return True
        except IntegrityError:
            # A concurrent toggle inserted the row first; the pair is liked
            self.db.rollback()
            logger.info(f"Concurrent like for user {user_id} on note {note_id}")
            return True

    def add_comment(self, user_id: int, note_id: int, content: str) -> int:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")
        self._require_note(note_id)

        comment = Comment(user_id=user_id, note_id=note_id, content=content)
        try:
            self.db.add(comment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return comment.id

    def list_comments(self, note_id: int) -> List[CommentResponse]:
        stmt = (
            select(Comment, User.name.label("user_name"))
            .join(User, Comment.user_id == User.id)
            .where(Comment.note_id == note_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return [
            CommentResponse(
                id=comment.id,
                user_id=comment.user_id,
                note_id=comment.note_id,
                content=comment.content,
                created_at=comment.created_at,
                user_name=user_name,
            )
            for comment, user_name in self.db.execute(stmt).all()
        ]

    # ────────────────────────────────────────────────────────────────
    #  Downloads
    # ────────────────────────────────────────────────────────────────
    def record_download(
        self, note_id: int, check_file: Optional[Callable[[str], Any]] = None
    ) -> Tuple[str, str]:
        """
        Count a download and return ``(file_ref, download_name)``.

        The counter is bumped by a single UPDATE so concurrent downloads
        never lose increments. ``check_file`` runs before the commit; if it
        raises, the increment is rolled back.
        """
        try:
            result = self.db.execute(
                update(Note)
                .where(Note.id == note_id)
                .values(downloads=Note.downloads + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Note not found")

            file_ref, title = self.db.execute(
                select(Note.file_path, Note.title).where(Note.id == note_id)
            ).one()
            if check_file is not None:
                check_file(file_ref)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        download_name = title + os.path.splitext(file_ref)[1]
        return file_ref, download_name
