"""
In-memory storage backend.

Process-local dicts keyed by id, with per-instance counters. Intended for
development and demos: reads are full scans, nothing survives a restart,
and there is no locking (callers run on one thread). Profile-scoped
operations read and write the unscoped collections, which is only correct
while a user has a single active profile.

Records never leave the backend by reference: payloads are deep-copied on
write and every returned record is a deep copy of the stored one.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TypeVar

from pydantic import BaseModel

from app.constants.roles import QuestionStatus, UserRole
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
from app.storage.base import BaseStorage, PasswordHasher
from app.storage.errors import DuplicateUsernameError, UnknownUserError

logger = get_logger("storage.memory")

DEFAULT_DEMO_USERNAME = "alex"
DEFAULT_DEMO_PASSWORD = "password"

RecordT = TypeVar("RecordT", bound=BaseModel)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _copy(record: RecordT) -> RecordT:
    return record.model_copy(deep=True)


class MemStorage(BaseStorage):
    """Reference backend backed by plain dicts."""

    def __init__(
        self,
        password_hasher: PasswordHasher,
        demo_username: str = DEFAULT_DEMO_USERNAME,
        demo_password: str = DEFAULT_DEMO_PASSWORD,
    ) -> None:
        self._hash_password = password_hasher
        self._demo_username = demo_username
        self._demo_password = demo_password

        self._users: Dict[int, UserRead] = {}
        self._urls: Dict[int, UrlRead] = {}
        self._chat_messages: Dict[int, ChatMessageRead] = {}
        self._leo_questions: Dict[int, LeoQuestionRead] = {}
        self._user_contexts: Dict[int, UserContextRead] = {}

        self._next_ids: Dict[str, int] = {
            "user": 1,
            "url": 1,
            "chat_message": 1,
            "leo_question": 1,
            "user_context": 1,
        }

    def _next_id(self, kind: str) -> int:
        value = self._next_ids[kind]
        self._next_ids[kind] = value + 1
        return value

    def _require_user(self, user_id: int) -> None:
        if user_id not in self._users:
            raise UnknownUserError(user_id)

    def initialize(self) -> None:
        """Seed the demo account unless it already exists."""
        if self._find_user(self._demo_username) is not None:
            return
        hashed = self._hash_password(self._demo_password)
        self.create_user(UserCreate(username=self._demo_username, password=hashed))
        logger.info("Seeded demo user %s", self._demo_username)

    # Users

    def _find_user(self, username: str) -> Optional[UserRead]:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    def get_user(self, user_id: int) -> Optional[UserRead]:
        user = self._users.get(user_id)
        return _copy(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRead]:
        user = self._find_user(username)
        return _copy(user) if user else None

    def create_user(self, data: UserCreate) -> UserRead:
        if self._find_user(data.username) is not None:
            raise DuplicateUsernameError(data.username)
        user = UserRead(
            id=self._next_id("user"),
            username=data.username,
            password=data.password,
            role=UserRole.USER,
            pro_mode=False,
        )
        self._users[user.id] = user
        return _copy(user)

    # URLs

    def _user_urls(self, user_id: int) -> List[UrlRead]:
        owned = [u for u in self._urls.values() if u.user_id == user_id]
        return sorted(owned, key=lambda u: (u.created_at, u.id), reverse=True)

    def get_urls(self, user_id: int) -> List[UrlRead]:
        return [_copy(u) for u in self._user_urls(user_id)]

    def create_url(self, user_id: int, data: UrlCreate) -> UrlRead:
        self._require_user(user_id)
        url = UrlRead(
            id=self._next_id("url"),
            user_id=user_id,
            url=data.url,
            title=data.title or None,
            notes=data.notes or None,
            content=None,
            analysis=None,
            created_at=_now(),
        )
        self._urls[url.id] = url
        return _copy(url)

    def _owned_url(self, url_id: int, user_id: int) -> Optional[UrlRead]:
        url = self._urls.get(url_id)
        if url is None or url.user_id != user_id:
            return None
        return url

    def delete_url(self, url_id: int, user_id: int) -> bool:
        if self._owned_url(url_id, user_id) is None:
            return False
        del self._urls[url_id]
        return True

    def update_url_analysis(
        self, url_id: int, user_id: int, analysis: Any
    ) -> Optional[UrlRead]:
        url = self._owned_url(url_id, user_id)
        if url is None:
            return None
        updated = url.model_copy(update={"analysis": deepcopy(analysis)})
        self._urls[url_id] = updated
        return _copy(updated)

    def update_url_content(
        self, url_id: int, user_id: int, content: str
    ) -> Optional[UrlRead]:
        url = self._owned_url(url_id, user_id)
        if url is None:
            return None
        updated = url.model_copy(update={"content": content})
        self._urls[url_id] = updated
        return _copy(updated)

    # Chat messages

    def _user_messages(self, user_id: int) -> List[ChatMessageRead]:
        owned = [m for m in self._chat_messages.values() if m.user_id == user_id]
        return sorted(owned, key=lambda m: (m.created_at, m.id))

    def get_chat_messages(self, user_id: int) -> List[ChatMessageRead]:
        return [_copy(m) for m in self._user_messages(user_id)]

    def create_chat_message(
        self, user_id: int, data: ChatMessageCreate
    ) -> ChatMessageRead:
        self._require_user(user_id)
        message = ChatMessageRead(
            id=self._next_id("chat_message"),
            user_id=user_id,
            role=data.role,
            content=data.content,
            created_at=_now(),
        )
        self._chat_messages[message.id] = message
        return _copy(message)

    def clear_chat_history(self, user_id: int) -> None:
        # Swap in a new dict so readers never observe a half-cleared history
        self._chat_messages = {
            message_id: message
            for message_id, message in self._chat_messages.items()
            if message.user_id != user_id
        }

    # Leo questions

    def get_leo_questions(self, user_id: int) -> List[LeoQuestionRead]:
        owned = [q for q in self._leo_questions.values() if q.user_id == user_id]
        return [
            _copy(q)
            for q in sorted(owned, key=lambda q: (q.created_at, q.id), reverse=True)
        ]

    def create_leo_question(
        self, user_id: int, data: LeoQuestionCreate
    ) -> LeoQuestionRead:
        self._require_user(user_id)
        question = LeoQuestionRead(
            id=self._next_id("leo_question"),
            user_id=user_id,
            question_text=data.question_text,
            status=QuestionStatus.PENDING,
            answer=None,
            created_at=_now(),
            answered_at=None,
        )
        self._leo_questions[question.id] = question
        return _copy(question)

    def update_leo_question(
        self, question_id: int, user_id: int, answer: str
    ) -> Optional[LeoQuestionRead]:
        question = self._leo_questions.get(question_id)
        if question is None or question.user_id != user_id:
            return None
        updated = question.model_copy(
            update={
                "status": QuestionStatus.ANSWERED,
                "answer": answer,
                "answered_at": _now(),
            }
        )
        self._leo_questions[question_id] = updated
        return _copy(updated)

    # Admin

    def get_all_users_with_stats(self) -> List[UserStats]:
        stats = []
        for user in self._users.values():
            stats.append(
                UserStats(
                    user=_copy(user),
                    url_count=sum(
                        1 for u in self._urls.values() if u.user_id == user.id
                    ),
                    message_count=sum(
                        1 for m in self._chat_messages.values() if m.user_id == user.id
                    ),
                    question_count=sum(
                        1 for q in self._leo_questions.values() if q.user_id == user.id
                    ),
                )
            )
        return stats

    def update_user_role(self, user_id: int, role: UserRole) -> Optional[UserRead]:
        user = self._users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update={"role": UserRole(role)})
        self._users[user_id] = updated
        return _copy(updated)

    # Versioned user context

    def _current_context(self, user_id: int) -> Optional[UserContextRead]:
        versions = [c for c in self._user_contexts.values() if c.user_id == user_id]
        if not versions:
            return None
        return max(versions, key=lambda c: c.version)

    def get_user_context(self, user_id: int) -> Optional[UserContextRead]:
        current = self._current_context(user_id)
        return _copy(current) if current else None

    def update_user_context(self, user_id: int, context: Any) -> UserContextRead:
        self._require_user(user_id)
        current = self._current_context(user_id)
        user_context = UserContextRead(
            id=self._next_id("user_context"),
            user_id=user_id,
            context=deepcopy(context),
            version=(current.version if current else 0) + 1,
            last_updated=_now(),
        )
        self._user_contexts[user_context.id] = user_context
        return _copy(user_context)

    # Profile-scoped data, backed by the unscoped collections

    def get_context_urls(self, user_id: int, profile_id: int) -> List[ContextUrlRead]:
        return [
            ContextUrlRead(**url.model_dump(), profile_id=profile_id)
            for url in self._user_urls(user_id)
        ]

    def create_context_url(
        self, user_id: int, profile_id: int, data: UrlCreate
    ) -> ContextUrlRead:
        url = self.create_url(user_id, data)
        return ContextUrlRead(**url.model_dump(), profile_id=profile_id)

    def get_context_chat_messages(
        self, user_id: int, profile_id: int
    ) -> List[ContextChatMessageRead]:
        return [
            ContextChatMessageRead(**message.model_dump(), profile_id=profile_id)
            for message in self._user_messages(user_id)
        ]

    def create_context_chat_message(
        self, user_id: int, profile_id: int, data: ChatMessageCreate
    ) -> ContextChatMessageRead:
        message = self.create_chat_message(user_id, data)
        return ContextChatMessageRead(**message.model_dump(), profile_id=profile_id)

    def migrate_data_to_context(
        self, user_id: int, profile_id: int
    ) -> ContextDataCounts:
        # Nothing to move: profiles already see the unscoped collections
        return ContextDataCounts(urls=0, messages=0)

    def load_context_data(self, user_id: int, profile_id: int) -> ContextDataCounts:
        return ContextDataCounts(
            urls=len(self._user_urls(user_id)),
            messages=len(self._user_messages(user_id)),
        )
