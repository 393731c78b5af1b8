"""Pydantic schemas for users and the admin stats aggregate."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.constants.roles import UserRole


class UserCreate(BaseModel):
    """Signup input. password must already be hashed by the caller."""

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    """Stored account."""

    id: int
    username: str
    password: str
    role: UserRole = UserRole.USER
    pro_mode: bool = False

    model_config = {"from_attributes": True}


class UserStats(BaseModel):
    """A user with counts of their urls, chat messages and questions."""

    user: UserRead
    url_count: int = 0
    message_count: int = 0
    question_count: int = 0
