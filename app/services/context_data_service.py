"""Service for profile-scoped urls and chat messages (pro mode)."""

from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.chat_message import ChatMessage
from app.models.context_data import ContextChatMessage, ContextUrl
from app.models.url import Url
from app.schemas.chat_message import ChatMessageCreate
from app.schemas.url import UrlCreate
from app.utils.db.db_session_helper import commit_for_user


class ContextDataService:
    """
    Reads and writes rows partitioned by (user_id, profile_id).

    Migration copies a user's unscoped rows into a profile. Copies remember
    their source row, so migrating again only picks up rows added since.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.logger = logging.getLogger(__name__)

    def get_urls(self, user_id: int, profile_id: int) -> List[ContextUrl]:
        """Profile URLs, newest first."""
        return (
            self.db.query(ContextUrl)
            .filter(ContextUrl.user_id == user_id, ContextUrl.profile_id == profile_id)
            .order_by(ContextUrl.created_at.desc(), ContextUrl.id.desc())
            .all()
        )

    def create_url(self, user_id: int, profile_id: int, data: UrlCreate) -> ContextUrl:
        url = ContextUrl(
            user_id=user_id,
            profile_id=profile_id,
            url=data.url,
            title=data.title or None,
            notes=data.notes or None,
            content=None,
            analysis=None,
        )
        self.db.add(url)
        commit_for_user(self.db, user_id)
        self.db.refresh(url)
        return url

    def get_messages(self, user_id: int, profile_id: int) -> List[ContextChatMessage]:
        """Profile chat history, oldest first."""
        return (
            self.db.query(ContextChatMessage)
            .filter(
                ContextChatMessage.user_id == user_id,
                ContextChatMessage.profile_id == profile_id,
            )
            .order_by(ContextChatMessage.created_at.asc(), ContextChatMessage.id.asc())
            .all()
        )

    def create_message(
        self, user_id: int, profile_id: int, data: ChatMessageCreate
    ) -> ContextChatMessage:
        message = ContextChatMessage(
            user_id=user_id,
            profile_id=profile_id,
            role=data.role,
            content=data.content,
        )
        self.db.add(message)
        commit_for_user(self.db, user_id)
        self.db.refresh(message)
        return message

    def migrate(self, user_id: int, profile_id: int) -> Tuple[int, int]:
        """
        Copy the user's unscoped urls and messages into the profile.

        Only rows owned by user_id are read. Returns (urls_copied,
        messages_copied) for this call. If a concurrent migration of the
        same profile commits first, the copy is retried once and picks up
        whatever that migration did not.
        """
        try:
            return self._copy_rows(user_id, profile_id)
        except IntegrityError:
            self.db.rollback()
            self.logger.info(
                "Concurrent migration for user=%s profile=%s, retrying",
                user_id,
                profile_id,
            )
            return self._copy_rows(user_id, profile_id)

    def _copy_rows(self, user_id: int, profile_id: int) -> Tuple[int, int]:
        migrated_urls = select(ContextUrl.source_id).where(
            ContextUrl.user_id == user_id,
            ContextUrl.profile_id == profile_id,
            ContextUrl.source_id.is_not(None),
        )
        urls = (
            self.db.query(Url)
            .filter(Url.user_id == user_id, Url.id.not_in(migrated_urls))
            .order_by(Url.id)
            .all()
        )
        for url in urls:
            self.db.add(
                ContextUrl(
                    user_id=user_id,
                    profile_id=profile_id,
                    source_id=url.id,
                    url=url.url,
                    title=url.title,
                    notes=url.notes,
                    content=url.content,
                    analysis=url.analysis,
                    created_at=url.created_at,
                )
            )

        migrated_messages = select(ContextChatMessage.source_id).where(
            ContextChatMessage.user_id == user_id,
            ContextChatMessage.profile_id == profile_id,
            ContextChatMessage.source_id.is_not(None),
        )
        messages = (
            self.db.query(ChatMessage)
            .filter(
                ChatMessage.user_id == user_id,
                ChatMessage.id.not_in(migrated_messages),
            )
            .order_by(ChatMessage.id)
            .all()
        )
        for message in messages:
            self.db.add(
                ContextChatMessage(
                    user_id=user_id,
                    profile_id=profile_id,
                    source_id=message.id,
                    role=message.role,
                    content=message.content,
                    created_at=message.created_at,
                )
            )

        self.db.commit()
        return len(urls), len(messages)

    def counts(self, user_id: int, profile_id: int) -> Tuple[int, int]:
        """Return (url_count, message_count) visible under the profile."""
        url_count = (
            self.db.query(ContextUrl)
            .filter(ContextUrl.user_id == user_id, ContextUrl.profile_id == profile_id)
            .count()
        )
        message_count = (
            self.db.query(ContextChatMessage)
            .filter(
                ContextChatMessage.user_id == user_id,
                ContextChatMessage.profile_id == profile_id,
            )
            .count()
        )
        return url_count, message_count
