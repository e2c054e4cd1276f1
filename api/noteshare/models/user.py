from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..config.database import Base
from .note import NoteResponse


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash
    name = Column(String, nullable=False)
    college = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    college: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    college: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class ProfileResponse(BaseModel):
    user: UserResponse
    notes: List[NoteResponse]
