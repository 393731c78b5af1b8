"""User model: one row per account."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, String

from app.constants.roles import UserRole
from app.db import Base, UTCDateTime


class User(Base):
    """Account row. Password is stored exactly as handed in (already hashed)."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(512), nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.USER.value)
    pro_mode = Column(Boolean, nullable=False, default=False)
    # Last version handed out for this user's context; bumped atomically
    context_version = Column(Integer, nullable=False, default=0)
    created_at = Column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
