"""Service for Leo questions: ask, list, answer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.constants.roles import QuestionStatus
from app.models.leo_question import LeoQuestion
from app.schemas.leo_question import LeoQuestionCreate
from app.utils.db.db_session_helper import commit_for_user


class LeoQuestionService:
    """Manages questions and their single pending -> answered transition."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_questions(self, user_id: int) -> List[LeoQuestion]:
        """Questions asked by user_id, newest first."""
        return (
            self.db.query(LeoQuestion)
            .filter(LeoQuestion.user_id == user_id)
            .order_by(LeoQuestion.created_at.desc(), LeoQuestion.id.desc())
            .all()
        )

    def create_question(self, user_id: int, data: LeoQuestionCreate) -> LeoQuestion:
        """Store a new pending question with no answer."""
        question = LeoQuestion(
            user_id=user_id,
            question_text=data.question_text,
            status=QuestionStatus.PENDING.value,
            answer=None,
            answered_at=None,
        )
        self.db.add(question)
        commit_for_user(self.db, user_id)
        self.db.refresh(question)
        return question

    def answer_question(
        self, question_id: int, user_id: int, answer: str
    ) -> Optional[LeoQuestion]:
        """
        Record the answer for an owned question.
        Returns None if the question does not exist or belongs to someone else.
        """
        question = (
            self.db.query(LeoQuestion)
            .filter(LeoQuestion.id == question_id, LeoQuestion.user_id == user_id)
            .first()
        )
        if question is None:
            return None
        question.status = QuestionStatus.ANSWERED.value
        question.answer = answer
        question.answered_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(question)
        return question
