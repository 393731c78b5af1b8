"""Url model: a saved link with optional fetched content and analysis."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text

from app.db import Base, JSONType, UTCDateTime


class Url(Base):
    """Saved URL owned by one user. content and analysis are filled in later."""

    __tablename__ = "urls"
    __table_args__ = (Index("ix_urls_user_created", "user_id", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    url = Column(Text, nullable=False)
    title = Column(String(512), nullable=True)
    notes = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    analysis = Column(JSONType, nullable=True)
    created_at = Column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
