from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.sql import func

from ..config.database import Base


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course = Column(String, nullable=False)
    title = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    semester = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    file_path = Column(String, nullable=False)  # generated storage name
    file_type = Column(String, nullable=False)
    downloads = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    note_id = Column(Integer, ForeignKey("notes.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "note_id", name="unique_user_note_rating"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
    )


class Like(Base):
    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    note_id = Column(Integer, ForeignKey("notes.id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "note_id", name="unique_user_note_like"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    note_id = Column(Integer, ForeignKey("notes.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


# ────────────────────────────────────────────────────────────────────
#  Schemas
# ────────────────────────────────────────────────────────────────────
class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course: str
    title: str
    subject: str
    semester: Optional[int] = None
    description: Optional[str] = None
    file_path: str
    file_type: str
    downloads: int
    created_at: Optional[datetime] = None
    author_name: str
    avg_rating: Optional[float] = None
    rating_count: int = 0
    like_count: int = 0


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    note_id: int
    content: str
    created_at: Optional[datetime] = None
    user_name: str


class NoteDetailResponse(NoteResponse):
    comments: List[CommentResponse] = []
    # Only set when the request carries a valid token
    liked: Optional[bool] = None
    my_rating: Optional[int] = None


class NoteCreatedResponse(BaseModel):
    id: int


class RatingRequest(BaseModel):
    rating: int = Field(..., description="Score from 1 to 5")


class CommentCreate(BaseModel):
    content: str


class LikeResponse(BaseModel):
    liked: bool


class SuccessResponse(BaseModel):
    success: bool = True
