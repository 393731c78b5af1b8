"""Service for user lookups, signup, roles and the admin stats aggregate."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants.roles import UserRole
from app.models.chat_message import ChatMessage
from app.models.leo_question import LeoQuestion
from app.models.url import Url
from app.models.user import User
from app.schemas.user import UserCreate
from app.storage.errors import DuplicateUsernameError

logger = logging.getLogger(__name__)


class UserService:
    """Manages user accounts."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        """Fetch a user by id."""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Fetch a user by username."""
        return self.db.query(User).filter(User.username == username).first()

    def create_user(self, data: UserCreate) -> User:
        """
        Create a user with role 'user' and pro mode off.
        Raises DuplicateUsernameError if the username is taken, including
        when a concurrent signup wins the unique constraint.
        """
        if self.get_user_by_username(data.username) is not None:
            raise DuplicateUsernameError(data.username)
        user = User(
            username=data.username,
            password=data.password,
            role=UserRole.USER.value,
            pro_mode=False,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Signup lost username race for %s", data.username)
            raise DuplicateUsernameError(data.username) from e
        self.db.refresh(user)
        return user

    def update_role(self, user_id: int, role: UserRole) -> Optional[User]:
        """Set a user's role. Returns None if the user does not exist."""
        user = self.get_user(user_id)
        if user is None:
            return None
        user.role = UserRole(role).value
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_users_with_stats(self) -> List[Tuple[User, int, int, int]]:
        """
        Return (user, url_count, message_count, question_count) for every user.

        One statement with correlated count subqueries, so all counts come
        from the same read snapshot.
        """
        url_count = (
            select(func.count(Url.id))
            .where(Url.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        message_count = (
            select(func.count(ChatMessage.id))
            .where(ChatMessage.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        question_count = (
            select(func.count(LeoQuestion.id))
            .where(LeoQuestion.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        rows = (
            self.db.query(User, url_count, message_count, question_count)
            .order_by(User.id)
            .all()
        )
        return [tuple(row) for row in rows]
