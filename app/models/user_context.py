"""UserContext model: versioned context snapshots per user."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint

from app.db import Base, JSONType, UTCDateTime


class UserContext(Base):
    """One row per context version. History is append-only."""

    __tablename__ = "user_contexts"
    __table_args__ = (
        UniqueConstraint("user_id", "version", name="uq_user_contexts_user_version"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    context = Column(JSONType, nullable=True)
    version = Column(Integer, nullable=False)
    last_updated = Column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
