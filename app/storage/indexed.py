"""
Search-indexing storage decorator.

Wraps another backend and mirrors URL and chat message writes into a
secondary search index. The wrapped backend stays the source of truth:
index failures are logged and counted, never raised, and never undo the
primary write. Reads not listed below go straight to the wrapped backend.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from app.constants.roles import UserRole
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
from app.storage.base import BaseStorage
from app.storage.search_index import SearchIndex

logger = get_logger("storage.indexed")

KIND_URL = "url"
KIND_CHAT_MESSAGE = "chat_message"
KIND_CONTEXT_URL = "context_url"
KIND_CONTEXT_CHAT_MESSAGE = "context_chat_message"

UrlT = TypeVar("UrlT", bound=UrlRead)
MessageT = TypeVar("MessageT", bound=ChatMessageRead)
RecordT = TypeVar("RecordT", bound=Union[UrlRead, ChatMessageRead])


def document_id(kind: str, record_id: int) -> str:
    return f"{kind}-{record_id}"


def _url_document(
    kind: str, url: UrlRead, profile_id: Optional[int] = None
) -> Dict[str, Any]:
    parts = [url.url, url.notes, url.content]
    document = {
        "id": document_id(kind, url.id),
        "kind": kind,
        "record_id": url.id,
        "user_id": url.user_id,
        "title": url.title or "",
        "text": "\n".join(p for p in parts if p),
        "created_at": int(url.created_at.timestamp()),
    }
    if profile_id is not None:
        document["profile_id"] = profile_id
    return document


def _message_document(
    kind: str, message: ChatMessageRead, profile_id: Optional[int] = None
) -> Dict[str, Any]:
    document = {
        "id": document_id(kind, message.id),
        "kind": kind,
        "record_id": message.id,
        "user_id": message.user_id,
        "title": message.role,
        "text": message.content,
        "created_at": int(message.created_at.timestamp()),
    }
    if profile_id is not None:
        document["profile_id"] = profile_id
    return document


def _contains(query: str, *values: Optional[str]) -> bool:
    needle = query.lower()
    return any(needle in value.lower() for value in values if value)


def _match_urls(query: str, urls: List[UrlT], limit: int) -> List[UrlT]:
    matches = [u for u in urls if _contains(query, u.url, u.title, u.notes, u.content)]
    return matches[:limit]


def _match_messages(
    query: str, messages: List[MessageT], limit: int
) -> List[MessageT]:
    return [m for m in messages if _contains(query, m.content)][:limit]


class IndexedStorage(BaseStorage):
    """Decorator that keeps a search index in step with the wrapped backend."""

    def __init__(self, inner: BaseStorage, index: SearchIndex) -> None:
        self._inner = inner
        self._index = index
        self.index_failures = 0

    @property
    def inner(self) -> BaseStorage:
        return self._inner

    def _mirror(self, operation: str, write: Callable[[], None]) -> None:
        """Run an index write; failures are reported, not raised."""
        try:
            write()
        except Exception as e:
            self.index_failures += 1
            logger.warning(
                "Search index %s failed, primary write kept: %s", operation, e
            )

    def initialize(self) -> None:
        self._inner.initialize()
        self._mirror("ensure_collection", self._index.ensure_collection)

    # Users

    def get_user(self, user_id: int) -> Optional[UserRead]:
        return self._inner.get_user(user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRead]:
        return self._inner.get_user_by_username(username)

    def create_user(self, data: UserCreate) -> UserRead:
        return self._inner.create_user(data)

    # URLs

    def get_urls(self, user_id: int) -> List[UrlRead]:
        return self._inner.get_urls(user_id)

    def create_url(self, user_id: int, data: UrlCreate) -> UrlRead:
        url = self._inner.create_url(user_id, data)
        self._mirror(
            "create_url", lambda: self._index.upsert(_url_document(KIND_URL, url))
        )
        return url

    def delete_url(self, url_id: int, user_id: int) -> bool:
        deleted = self._inner.delete_url(url_id, user_id)
        if deleted:
            self._mirror(
                "delete_url",
                lambda: self._index.delete(document_id(KIND_URL, url_id)),
            )
        return deleted

    def update_url_analysis(
        self, url_id: int, user_id: int, analysis: Any
    ) -> Optional[UrlRead]:
        url = self._inner.update_url_analysis(url_id, user_id, analysis)
        if url is not None:
            self._mirror(
                "update_url_analysis",
                lambda: self._index.upsert(_url_document(KIND_URL, url)),
            )
        return url

    def update_url_content(
        self, url_id: int, user_id: int, content: str
    ) -> Optional[UrlRead]:
        url = self._inner.update_url_content(url_id, user_id, content)
        if url is not None:
            self._mirror(
                "update_url_content",
                lambda: self._index.upsert(_url_document(KIND_URL, url)),
            )
        return url

    # Chat messages

    def get_chat_messages(self, user_id: int) -> List[ChatMessageRead]:
        return self._inner.get_chat_messages(user_id)

    def create_chat_message(
        self, user_id: int, data: ChatMessageCreate
    ) -> ChatMessageRead:
        message = self._inner.create_chat_message(user_id, data)
        self._mirror(
            "create_chat_message",
            lambda: self._index.upsert(_message_document(KIND_CHAT_MESSAGE, message)),
        )
        return message

    def clear_chat_history(self, user_id: int) -> None:
        self._inner.clear_chat_history(user_id)
        self._mirror(
            "clear_chat_history",
            lambda: self._index.delete_where(KIND_CHAT_MESSAGE, user_id),
        )

    # Leo questions

    def get_leo_questions(self, user_id: int) -> List[LeoQuestionRead]:
        return self._inner.get_leo_questions(user_id)

    def create_leo_question(
        self, user_id: int, data: LeoQuestionCreate
    ) -> LeoQuestionRead:
        return self._inner.create_leo_question(user_id, data)

    def update_leo_question(
        self, question_id: int, user_id: int, answer: str
    ) -> Optional[LeoQuestionRead]:
        return self._inner.update_leo_question(question_id, user_id, answer)

    # Admin

    def get_all_users_with_stats(self) -> List[UserStats]:
        return self._inner.get_all_users_with_stats()

    def update_user_role(self, user_id: int, role: UserRole) -> Optional[UserRead]:
        return self._inner.update_user_role(user_id, role)

    # Versioned user context

    def get_user_context(self, user_id: int) -> Optional[UserContextRead]:
        return self._inner.get_user_context(user_id)

    def update_user_context(self, user_id: int, context: Any) -> UserContextRead:
        return self._inner.update_user_context(user_id, context)

    # Profile-scoped data

    def get_context_urls(self, user_id: int, profile_id: int) -> List[ContextUrlRead]:
        return self._inner.get_context_urls(user_id, profile_id)

    def create_context_url(
        self, user_id: int, profile_id: int, data: UrlCreate
    ) -> ContextUrlRead:
        url = self._inner.create_context_url(user_id, profile_id, data)
        self._mirror(
            "create_context_url",
            lambda: self._index.upsert(
                _url_document(KIND_CONTEXT_URL, url, profile_id=profile_id)
            ),
        )
        return url

    def get_context_chat_messages(
        self, user_id: int, profile_id: int
    ) -> List[ContextChatMessageRead]:
        return self._inner.get_context_chat_messages(user_id, profile_id)

    def create_context_chat_message(
        self, user_id: int, profile_id: int, data: ChatMessageCreate
    ) -> ContextChatMessageRead:
        message = self._inner.create_context_chat_message(user_id, profile_id, data)
        self._mirror(
            "create_context_chat_message",
            lambda: self._index.upsert(
                _message_document(
                    KIND_CONTEXT_CHAT_MESSAGE, message, profile_id=profile_id
                )
            ),
        )
        return message

    def migrate_data_to_context(
        self, user_id: int, profile_id: int
    ) -> ContextDataCounts:
        counts = self._inner.migrate_data_to_context(user_id, profile_id)
        if counts.urls or counts.messages:
            self._mirror(
                "migrate_data_to_context",
                lambda: self._index_profile(user_id, profile_id),
            )
        return counts

    def _index_profile(self, user_id: int, profile_id: int) -> None:
        # Rows indexed by an earlier migration are upserted again unchanged
        for url in self._inner.get_context_urls(user_id, profile_id):
            self._index.upsert(
                _url_document(KIND_CONTEXT_URL, url, profile_id=profile_id)
            )
        for message in self._inner.get_context_chat_messages(user_id, profile_id):
            self._index.upsert(
                _message_document(
                    KIND_CONTEXT_CHAT_MESSAGE, message, profile_id=profile_id
                )
            )

    def load_context_data(self, user_id: int, profile_id: int) -> ContextDataCounts:
        return self._inner.load_context_data(user_id, profile_id)

    # Search (not part of BaseStorage)

    def _search_ids(
        self,
        query: str,
        kind: str,
        user_id: int,
        limit: int,
        profile_id: Optional[int] = None,
    ) -> List[int]:
        try:
            return self._index.search(
                query, kind=kind, user_id=user_id, limit=limit, profile_id=profile_id
            )
        except Exception as e:
            logger.warning("Search index query failed, using fallback: %s", e)
            return []

    def search_urls(self, user_id: int, query: str, limit: int = 10) -> List[UrlRead]:
        """
        URLs owned by user_id matching query, best match first.

        Hits are hydrated from the wrapped backend, so stale index entries
        and other users' rows never leak through. With no index hits the
        search falls back to a substring match over the user's URLs.
        """
        urls = self._inner.get_urls(user_id)
        ids = self._search_ids(query, KIND_URL, user_id, limit)
        return self._hydrate(ids, urls) or _match_urls(query, urls, limit)

    def search_chat_messages(
        self, user_id: int, query: str, limit: int = 10
    ) -> List[ChatMessageRead]:
        """Chat messages owned by user_id matching query; same fallback as search_urls."""
        messages = self._inner.get_chat_messages(user_id)
        ids = self._search_ids(query, KIND_CHAT_MESSAGE, user_id, limit)
        return self._hydrate(ids, messages) or _match_messages(query, messages, limit)

    def search_context_urls(
        self, user_id: int, profile_id: int, query: str, limit: int = 10
    ) -> List[ContextUrlRead]:
        """URLs visible under one profile matching query."""
        urls = self._inner.get_context_urls(user_id, profile_id)
        ids = self._search_ids(
            query, KIND_CONTEXT_URL, user_id, limit, profile_id=profile_id
        )
        return self._hydrate(ids, urls) or _match_urls(query, urls, limit)

    def search_context_chat_messages(
        self, user_id: int, profile_id: int, query: str, limit: int = 10
    ) -> List[ContextChatMessageRead]:
        """Chat messages visible under one profile matching query."""
        messages = self._inner.get_context_chat_messages(user_id, profile_id)
        ids = self._search_ids(
            query, KIND_CONTEXT_CHAT_MESSAGE, user_id, limit, profile_id=profile_id
        )
        return self._hydrate(ids, messages) or _match_messages(query, messages, limit)

    @staticmethod
    def _hydrate(ids: List[int], records: List[RecordT]) -> List[RecordT]:
        by_id = {record.id: record for record in records}
        return [by_id[record_id] for record_id in ids if record_id in by_id]
