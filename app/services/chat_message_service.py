"""ChatMessage create, history read and clear."""

from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from app.models.chat_message import ChatMessage
from app.schemas.chat_message import ChatMessageCreate
from app.utils.db.db_session_helper import commit_for_user


class ChatMessageService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_message(self, user_id: int, data: ChatMessageCreate) -> ChatMessage:
        message = ChatMessage(user_id=user_id, **data.model_dump())
        self.db.add(message)
        commit_for_user(self.db, user_id)
        self.db.refresh(message)
        return message

    def get_messages(self, user_id: int) -> List[ChatMessage]:
        return (
            self.db.query(ChatMessage)
            .filter(ChatMessage.user_id == user_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .all()
        )

    def clear_history(self, user_id: int) -> int:
        """Delete all of a user's messages in a single statement. Returns rows removed."""
        deleted = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
