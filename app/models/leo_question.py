"""LeoQuestion model: a question queued for an answer."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text

from app.constants.roles import QuestionStatus
from app.db import Base, UTCDateTime


class LeoQuestion(Base):
    """Question asked by a user. answer and answered_at stay NULL while pending."""

    __tablename__ = "leo_questions"
    __table_args__ = (
        Index("ix_leo_questions_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_text = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=QuestionStatus.PENDING.value)
    answer = Column(Text, nullable=True)
    created_at = Column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    answered_at = Column(UTCDateTime(), nullable=True)
