"""Profile-scoped copies of urls and chat messages (pro mode)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from app.db import Base, JSONType, UTCDateTime


class ContextUrl(Base):
    """Url row scoped to (user_id, profile_id).

    source_id points at the unscoped url a row was migrated from; NULL for
    rows created directly in the profile.
    """

    __tablename__ = "context_urls"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "profile_id", "source_id", name="uq_context_urls_source"
        ),
        Index("ix_context_urls_scope_created", "user_id", "profile_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    profile_id = Column(Integer, nullable=False)
    source_id = Column(
        Integer,
        ForeignKey("urls.id", ondelete="SET NULL"),
        nullable=True,
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


class ContextChatMessage(Base):
    """Chat message scoped to (user_id, profile_id)."""

    __tablename__ = "context_chat_messages"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "profile_id",
            "source_id",
            name="uq_context_chat_messages_source",
        ),
        Index(
            "ix_context_chat_messages_scope_created",
            "user_id",
            "profile_id",
            "created_at",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    profile_id = Column(Integer, nullable=False)
    source_id = Column(
        Integer,
        ForeignKey("chat_messages.id", ondelete="SET NULL"),
        nullable=True,
    )
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
