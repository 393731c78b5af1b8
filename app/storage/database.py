"""
Relational storage backend.

Same contract as MemStorage, backed by SQLAlchemy. Each call runs in its
own short-lived session and delegates to one service class; rows are
converted to the read schemas before the session closes so callers never
hold ORM objects. Profile-scoped data lives in separate tables.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy.orm import sessionmaker

from app.constants.roles import UserRole
from app.db import Base
from app.infra.logging_config import get_logger
from app.schemas.chat_message import (
    ChatMessageCreate,
    ChatMessageRead,
    ContextChatMessageRead,
)
from app.schemas.leo_question import LeoQuestionCreate, LeoQuestionRead
from app.schemas.url import ContextUrlRead, UrlCreate, UrlRead
from app.schemas.user import UserCreate, UserRead, UserStats
from app.schemas.user_context import ContextDataCounts, UserContextRead
from app.services.chat_message_service import ChatMessageService
from app.services.context_data_service import ContextDataService
from app.services.leo_question_service import LeoQuestionService
from app.services.url_service import UrlService
from app.services.user_context_service import UserContextService
from app.services.user_service import UserService
from app.storage.base import BaseStorage, PasswordHasher
from app.storage.errors import DuplicateUsernameError
from app.storage.memory import DEFAULT_DEMO_PASSWORD, DEFAULT_DEMO_USERNAME
from app.utils.db.db_session_helper import db_session

logger = get_logger("storage.database")


class DatabaseStorage(BaseStorage):
    """Durable backend over any SQLAlchemy-supported database."""

    def __init__(
        self,
        session_factory: sessionmaker,
        password_hasher: Optional[PasswordHasher] = None,
        create_schema: bool = True,
        demo_username: str = DEFAULT_DEMO_USERNAME,
        demo_password: str = DEFAULT_DEMO_PASSWORD,
    ) -> None:
        self._session_factory = session_factory
        self._hash_password = password_hasher
        self._create_schema = create_schema
        self._demo_username = demo_username
        self._demo_password = demo_password

    def _session(self):
        return db_session(self._session_factory)

    def initialize(self) -> None:
        """Create missing tables, then seed the demo account if a hasher is set."""
        if self._create_schema:
            with self._session() as db:
                Base.metadata.create_all(bind=db.get_bind())

        if self._hash_password is None:
            return
        if self.get_user_by_username(self._demo_username) is not None:
            return
        hashed = self._hash_password(self._demo_password)
        try:
            self.create_user(UserCreate(username=self._demo_username, password=hashed))
        except DuplicateUsernameError:
            # Another process seeded it between our check and insert
            return
        logger.info("Seeded demo user %s", self._demo_username)

    # Users

    def get_user(self, user_id: int) -> Optional[UserRead]:
        with self._session() as db:
            user = UserService(db).get_user(user_id)
            return UserRead.model_validate(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRead]:
        with self._session() as db:
            user = UserService(db).get_user_by_username(username)
            return UserRead.model_validate(user) if user else None

    def create_user(self, data: UserCreate) -> UserRead:
        with self._session() as db:
            return UserRead.model_validate(UserService(db).create_user(data))

    # URLs

    def get_urls(self, user_id: int) -> List[UrlRead]:
        with self._session() as db:
            return [UrlRead.model_validate(u) for u in UrlService(db).get_urls(user_id)]

    def create_url(self, user_id: int, data: UrlCreate) -> UrlRead:
        with self._session() as db:
            return UrlRead.model_validate(UrlService(db).create_url(user_id, data))

    def delete_url(self, url_id: int, user_id: int) -> bool:
        with self._session() as db:
            return UrlService(db).delete_url(url_id, user_id)

    def update_url_analysis(
        self, url_id: int, user_id: int, analysis: Any
    ) -> Optional[UrlRead]:
        with self._session() as db:
            url = UrlService(db).update_analysis(url_id, user_id, analysis)
            return UrlRead.model_validate(url) if url else None

    def update_url_content(
        self, url_id: int, user_id: int, content: str
    ) -> Optional[UrlRead]:
        with self._session() as db:
            url = UrlService(db).update_content(url_id, user_id, content)
            return UrlRead.model_validate(url) if url else None

    # Chat messages

    def get_chat_messages(self, user_id: int) -> List[ChatMessageRead]:
        with self._session() as db:
            return [
                ChatMessageRead.model_validate(m)
                for m in ChatMessageService(db).get_messages(user_id)
            ]

    def create_chat_message(
        self, user_id: int, data: ChatMessageCreate
    ) -> ChatMessageRead:
        with self._session() as db:
            message = ChatMessageService(db).create_message(user_id, data)
            return ChatMessageRead.model_validate(message)

    def clear_chat_history(self, user_id: int) -> None:
        with self._session() as db:
            ChatMessageService(db).clear_history(user_id)

    # Leo questions

    def get_leo_questions(self, user_id: int) -> List[LeoQuestionRead]:
        with self._session() as db:
            return [
                LeoQuestionRead.model_validate(q)
                for q in LeoQuestionService(db).get_questions(user_id)
            ]

    def create_leo_question(
        self, user_id: int, data: LeoQuestionCreate
    ) -> LeoQuestionRead:
        with self._session() as db:
            question = LeoQuestionService(db).create_question(user_id, data)
            return LeoQuestionRead.model_validate(question)

    def update_leo_question(
        self, question_id: int, user_id: int, answer: str
    ) -> Optional[LeoQuestionRead]:
        with self._session() as db:
            question = LeoQuestionService(db).answer_question(
                question_id, user_id, answer
            )
            return LeoQuestionRead.model_validate(question) if question else None

    # Admin

    def get_all_users_with_stats(self) -> List[UserStats]:
        with self._session() as db:
            return [
                UserStats(
                    user=UserRead.model_validate(user),
                    url_count=urls,
                    message_count=messages,
                    question_count=questions,
                )
                for user, urls, messages, questions in UserService(
                    db
                ).get_users_with_stats()
            ]

    def update_user_role(self, user_id: int, role: UserRole) -> Optional[UserRead]:
        with self._session() as db:
            user = UserService(db).update_role(user_id, role)
            return UserRead.model_validate(user) if user else None

    # Versioned user context

    def get_user_context(self, user_id: int) -> Optional[UserContextRead]:
        with self._session() as db:
            current = UserContextService(db).get_current(user_id)
            return UserContextRead.model_validate(current) if current else None

    def update_user_context(self, user_id: int, context: Any) -> UserContextRead:
        with self._session() as db:
            return UserContextRead.model_validate(
                UserContextService(db).append(user_id, context)
            )

    # Profile-scoped data

    def get_context_urls(self, user_id: int, profile_id: int) -> List[ContextUrlRead]:
        with self._session() as db:
            return [
                ContextUrlRead.model_validate(u)
                for u in ContextDataService(db).get_urls(user_id, profile_id)
            ]

    def create_context_url(
        self, user_id: int, profile_id: int, data: UrlCreate
    ) -> ContextUrlRead:
        with self._session() as db:
            url = ContextDataService(db).create_url(user_id, profile_id, data)
            return ContextUrlRead.model_validate(url)

    def get_context_chat_messages(
        self, user_id: int, profile_id: int
    ) -> List[ContextChatMessageRead]:
        with self._session() as db:
            return [
                ContextChatMessageRead.model_validate(m)
                for m in ContextDataService(db).get_messages(user_id, profile_id)
            ]

    def create_context_chat_message(
        self, user_id: int, profile_id: int, data: ChatMessageCreate
    ) -> ContextChatMessageRead:
        with self._session() as db:
            message = ContextDataService(db).create_message(user_id, profile_id, data)
            return ContextChatMessageRead.model_validate(message)

    def migrate_data_to_context(
        self, user_id: int, profile_id: int
    ) -> ContextDataCounts:
        with self._session() as db:
            urls, messages = ContextDataService(db).migrate(user_id, profile_id)
        logger.info(
            "Migrated %d urls and %d messages for user=%s into profile=%s",
            urls,
            messages,
            user_id,
            profile_id,
        )
        return ContextDataCounts(urls=urls, messages=messages)

    def load_context_data(self, user_id: int, profile_id: int) -> ContextDataCounts:
        with self._session() as db:
            urls, messages = ContextDataService(db).counts(user_id, profile_id)
        return ContextDataCounts(urls=urls, messages=messages)
