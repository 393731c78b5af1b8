"""Service for versioned user context: read current, append new version."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User
from app.models.user_context import UserContext
from app.storage.errors import UnknownUserError, VersionConflictError


class UserContextService:
    """Append-only context history. The current context is the highest version."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_current(self, user_id: int) -> Optional[UserContext]:
        """Fetch the highest version for a user."""
        return (
            self.db.query(UserContext)
            .filter(UserContext.user_id == user_id)
            .order_by(UserContext.version.desc())
            .first()
        )

    def append(self, user_id: int, context: Any) -> UserContext:
        """
        Store context as a new version (previous max + 1).

        The version comes from an atomic increment of users.context_version.
        The UPDATE holds the user's row lock until commit, so concurrent
        appends for one user are serialized and never share a version.
        Raises UnknownUserError if the user does not exist.
        """
        version = self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(context_version=User.context_version + 1)
            .returning(User.context_version)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()
        if version is None:
            self.db.rollback()
            raise UnknownUserError(user_id)

        user_context = UserContext(user_id=user_id, context=context, version=version)
        self.db.add(user_context)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise VersionConflictError(user_id, version) from e
        self.db.refresh(user_context)
        return user_context
