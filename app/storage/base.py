"""
Storage interface.

Every backend (in-memory, database, search-indexed decorator) implements
this contract so callers can hold one handle and never care which one
they got. Ownership is part of the contract: any call taking both a row id
and a user_id acts only on rows owned by that user, and reports anything
else as not found.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from app.constants.roles import UserRole
from app.schemas.chat_message import (
    ChatMessageCreate,
    ChatMessageRead,
    ContextChatMessageRead,
)
from app.schemas.leo_question import LeoQuestionCreate, LeoQuestionRead
from app.schemas.url import ContextUrlRead, UrlCreate, UrlRead
from app.schemas.user import UserCreate, UserRead, UserStats
from app.schemas.user_context import ContextDataCounts, UserContextRead

PasswordHasher = Callable[[str], str]


class BaseStorage(ABC):
    """Contract shared by all storage backends."""

    @abstractmethod
    def initialize(self) -> None:
        """Warm up the backend (schema, demo account). Call once before use."""
        ...

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRead]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRead]: ...

    @abstractmethod
    def create_user(self, data: UserCreate) -> UserRead:
        """Create a user with role 'user' and pro mode off. Raises DuplicateUsernameError."""
        ...

    # URLs

    @abstractmethod
    def get_urls(self, user_id: int) -> List[UrlRead]:
        """URLs owned by user_id, newest first."""
        ...

    @abstractmethod
    def create_url(self, user_id: int, data: UrlCreate) -> UrlRead: ...

    @abstractmethod
    def delete_url(self, url_id: int, user_id: int) -> bool:
        """Delete an owned URL. False if it does not exist or is not owned."""
        ...

    @abstractmethod
    def update_url_analysis(
        self, url_id: int, user_id: int, analysis: Any
    ) -> Optional[UrlRead]: ...

    @abstractmethod
    def update_url_content(
        self, url_id: int, user_id: int, content: str
    ) -> Optional[UrlRead]: ...

    # Chat messages

    @abstractmethod
    def get_chat_messages(self, user_id: int) -> List[ChatMessageRead]:
        """Chat history for user_id, oldest first."""
        ...

    @abstractmethod
    def create_chat_message(
        self, user_id: int, data: ChatMessageCreate
    ) -> ChatMessageRead: ...

    @abstractmethod
    def clear_chat_history(self, user_id: int) -> None:
        """Remove all of user_id's messages in one step."""
        ...

    # Leo questions

    @abstractmethod
    def get_leo_questions(self, user_id: int) -> List[LeoQuestionRead]:
        """Questions asked by user_id, newest first."""
        ...

    @abstractmethod
    def create_leo_question(
        self, user_id: int, data: LeoQuestionCreate
    ) -> LeoQuestionRead: ...

    @abstractmethod
    def update_leo_question(
        self, question_id: int, user_id: int, answer: str
    ) -> Optional[LeoQuestionRead]:
        """Mark an owned question answered. None if not found or not owned."""
        ...

    # Admin

    @abstractmethod
    def get_all_users_with_stats(self) -> List[UserStats]: ...

    @abstractmethod
    def update_user_role(
        self, user_id: int, role: UserRole
    ) -> Optional[UserRead]: ...

    # Versioned user context

    @abstractmethod
    def get_user_context(self, user_id: int) -> Optional[UserContextRead]:
        """Current (highest version) context for user_id."""
        ...

    @abstractmethod
    def update_user_context(self, user_id: int, context: Any) -> UserContextRead:
        """Append a new context version (previous max + 1). Never overwrites."""
        ...

    # Profile-scoped data (pro mode)

    @abstractmethod
    def get_context_urls(
        self, user_id: int, profile_id: int
    ) -> List[ContextUrlRead]: ...

    @abstractmethod
    def create_context_url(
        self, user_id: int, profile_id: int, data: UrlCreate
    ) -> ContextUrlRead: ...

    @abstractmethod
    def get_context_chat_messages(
        self, user_id: int, profile_id: int
    ) -> List[ContextChatMessageRead]: ...

    @abstractmethod
    def create_context_chat_message(
        self, user_id: int, profile_id: int, data: ChatMessageCreate
    ) -> ContextChatMessageRead: ...

    @abstractmethod
    def migrate_data_to_context(
        self, user_id: int, profile_id: int
    ) -> ContextDataCounts:
        """Copy user_id's unscoped urls and messages into the profile. Returns counts copied."""
        ...

    @abstractmethod
    def load_context_data(
        self, user_id: int, profile_id: int
    ) -> ContextDataCounts:
        """Counts of urls and messages visible under the profile."""
        ...
