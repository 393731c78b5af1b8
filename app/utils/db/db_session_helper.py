"""Context manager for short-lived database sessions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.storage.errors import UnknownUserError


@contextmanager
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Yield a session from session_factory.

    Rolls back on any exception and always closes the session. Services
    commit their own work.
    """
    db = session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def commit_for_user(db: Session, user_id: int) -> None:
    """
    Commit a row that references users.id.

    A foreign key failure means the user does not exist; it is rolled back
    and reported as UnknownUserError.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise UnknownUserError(user_id) from e
