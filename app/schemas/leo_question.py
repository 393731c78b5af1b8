"""Pydantic schemas for Leo questions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.constants.roles import QuestionStatus


class LeoQuestionCreate(BaseModel):
    """Input for asking a question."""

    question_text: str = Field(..., min_length=1)


class LeoQuestionRead(BaseModel):
    """Stored question. answer and answered_at are None while pending."""

    id: int
    user_id: int
    question_text: str
    status: QuestionStatus = QuestionStatus.PENDING
    answer: str | None = None
    created_at: datetime
    answered_at: datetime | None = None

    model_config = {"from_attributes": True}
