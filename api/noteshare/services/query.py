"""
Listing query for notes.

Translates search text, exact course/subject/semester filters and a sort
mode into one SELECT carrying the derived aggregates (average rating,
rating count, like count) and the author's display name.

Ordering:
    newest     created_at DESC
    rating     avg_rating DESC, unrated notes last
    downloads  downloads DESC

Every mode ends with ``id DESC`` so ties come back in a stable order.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Select, func, or_, select

from ..models.note import Like, Note, NoteResponse, Rating
from ..models.user import User


class SortMode(str, Enum):
    NEWEST = "newest"
    RATING = "rating"
    DOWNLOADS = "downloads"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortMode":
        """Unknown or missing values sort by newest"""
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


@dataclass
class NoteFilters:
    search: Optional[str] = None
    course: Optional[str] = None
    subject: Optional[str] = None
    semester: Optional[int] = None
    sort: SortMode = SortMode.NEWEST


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def aggregate_columns():
    """Correlated subqueries for the per-note aggregates"""
    avg_rating = (
        select(func.avg(Rating.rating))
        .where(Rating.note_id == Note.id)
        .correlate(Note)
        .scalar_subquery()
    )
    rating_count = (
        select(func.count(Rating.id))
        .where(Rating.note_id == Note.id)
        .correlate(Note)
        .scalar_subquery()
    )
    like_count = (
        select(func.count(Like.id))
        .where(Like.note_id == Note.id)
        .correlate(Note)
        .scalar_subquery()
    )
    return avg_rating, rating_count, like_count


def base_notes_query() -> Select:
    """Notes joined with their author, aggregates attached, no filters"""
    avg_rating, rating_count, like_count = aggregate_columns()
    return (
        select(
            Note,
            User.name.label("author_name"),
            avg_rating.label("avg_rating"),
            rating_count.label("rating_count"),
            like_count.label("like_count"),
        )
        .join(User, Note.user_id == User.id)
    )


def build_notes_query(filters: NoteFilters) -> Select:
    stmt = base_notes_query()

    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        stmt = stmt.where(
            or_(
                Note.title.ilike(pattern, escape="\\"),
                Note.description.ilike(pattern, escape="\\"),
                Note.subject.ilike(pattern, escape="\\"),
                Note.course.ilike(pattern, escape="\\"),
            )
        )
    if filters.course:
        stmt = stmt.where(Note.course == filters.course)
    if filters.subject:
        stmt = stmt.where(Note.subject == filters.subject)
    if filters.semester is not None:
        stmt = stmt.where(Note.semester == filters.semester)

    if filters.sort == SortMode.RATING:
        avg_rating, _, _ = aggregate_columns()
        # "IS NULL" sorts false before true, pushing unrated notes to the end
        stmt = stmt.order_by(avg_rating.is_(None), avg_rating.desc(), Note.id.desc())
    elif filters.sort == SortMode.DOWNLOADS:
        stmt = stmt.order_by(Note.downloads.desc(), Note.id.desc())
    else:
        stmt = stmt.order_by(Note.created_at.desc(), Note.id.desc())

    return stmt


def row_to_note(row) -> NoteResponse:
    """Flatten a (Note, author_name, avg_rating, rating_count, like_count) row"""
    note, author_name, avg_rating, rating_count, like_count = row
    data: Dict[str, Any] = {
        column.name: getattr(note, column.name) for column in Note.__table__.columns
    }
    data.update(
        author_name=author_name,
        avg_rating=float(avg_rating) if avg_rating is not None else None,
        rating_count=rating_count or 0,
        like_count=like_count or 0,
    )
    return NoteResponse.model_validate(data)
