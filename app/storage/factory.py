"""Pick the storage backend once at startup."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from app.config import Settings, get_settings
from app.db import create_session_factory
from app.infra.logging_config import LoggingConfig, get_logger
from app.storage.base import BaseStorage, PasswordHasher
from app.storage.database import DatabaseStorage
from app.storage.indexed import IndexedStorage
from app.storage.memory import MemStorage
from app.storage.search_index import TypesenseIndex

logger = get_logger("storage")


def create_storage(
    settings: Optional[Settings] = None,
    password_hasher: Optional[PasswordHasher] = None,
) -> BaseStorage:
    """
    Build the storage handle from configuration.

    Database backend when a database URL is configured, in-memory otherwise;
    wrapped in IndexedStorage when a search index API key is configured.
    The in-memory backend needs password_hasher to seed its demo account.
    """
    settings = settings or get_settings()

    storage: BaseStorage
    if settings.database_url:
        storage = DatabaseStorage(
            create_session_factory(settings.database_url, settings),
            password_hasher=password_hasher,
            demo_username=settings.demo_username,
            demo_password=settings.demo_password,
        )
        logger.info(
            "Using database storage (%s)",
            settings.database_url_obj.get_backend_name(),
        )
    else:
        if password_hasher is None:
            raise ValueError(
                "In-memory storage needs a password_hasher for its demo account"
            )
        storage = MemStorage(
            password_hasher,
            demo_username=settings.demo_username,
            demo_password=settings.demo_password,
        )
        logger.info("Using in-memory storage")

    if settings.search_index_enabled:
        index = TypesenseIndex(
            host=settings.typesense_host or "localhost",
            api_key=settings.typesense_api_key,
            port=settings.typesense_port,
            protocol=settings.typesense_protocol,
            collection=f"{settings.typesense_collection_prefix}_documents",
            timeout_seconds=settings.search_index_timeout_seconds,
            max_attempts=settings.search_index_max_attempts,
        )
        storage = IndexedStorage(storage, index)
        logger.info("Search indexing enabled on %s", index.base_url)

    return storage


@lru_cache(maxsize=1)
def get_storage(password_hasher: PasswordHasher) -> BaseStorage:
    """Process-wide storage handle, built and initialized on first call."""
    LoggingConfig()
    storage = create_storage(get_settings(), password_hasher)
    storage.initialize()
    return storage
