from app.storage.base import BaseStorage, PasswordHasher
from app.storage.errors import (
    DuplicateUsernameError,
    IndexWriteError,
    SearchIndexError,
    StorageError,
    UnknownUserError,
    VersionConflictError,
)
from app.storage.memory import MemStorage

__all__ = [
    "BaseStorage",
    "DuplicateUsernameError",
    "IndexWriteError",
    "MemStorage",
    "PasswordHasher",
    "SearchIndexError",
    "StorageError",
    "UnknownUserError",
    "VersionConflictError",
]
