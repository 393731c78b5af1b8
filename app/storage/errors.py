"""Storage error taxonomy.

Rows that are missing or owned by someone else are not errors: operations
return None or False for them. The classes here cover invariant violations
and secondary-index failures.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for storage failures."""


class DuplicateUsernameError(StorageError, ValueError):
    """A user with this username already exists."""

    def __init__(self, username: str) -> None:
        super().__init__(f"User with username {username!r} already exists")
        self.username = username


class UnknownUserError(StorageError):
    """A row was created for a user id that does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} does not exist")
        self.user_id = user_id


class VersionConflictError(StorageError):
    """Two context rows were given the same version for one user."""

    def __init__(self, user_id: int, version: int) -> None:
        super().__init__(f"Context version {version} already exists for user {user_id}")
        self.user_id = user_id
        self.version = version


class SearchIndexError(StorageError):
    """The secondary search index could not be reached or rejected a request."""


class IndexWriteError(SearchIndexError):
    """A write to the secondary search index failed after all attempts."""
