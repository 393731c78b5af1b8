import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings
from sqlalchemy.engine.url import make_url, URL

# Project root (parent of app/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "leo-storage"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})

    # Durable store. None selects the in-memory backend.
    database_url: Optional[str] = None  # Will be set dynamically
    database_pool_size: int = Field(
        default=10, json_schema_extra={"env": "DATABASE_POOL_SIZE"}
    )
    database_max_overflow: int = Field(
        default=20, json_schema_extra={"env": "DATABASE_MAX_OVERFLOW"}
    )
    db_app_name: str = Field(
        default="leo-storage", json_schema_extra={"env": "DB_APP_NAME"}
    )

    # Secondary search index. No API key means no indexing decorator.
    typesense_host: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TYPESENSE_HOST"}
    )
    typesense_api_key: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TYPESENSE_API_KEY"}
    )
    typesense_port: int = Field(
        default=443, json_schema_extra={"env": "TYPESENSE_PORT"}
    )
    typesense_protocol: str = Field(
        default="https", json_schema_extra={"env": "TYPESENSE_PROTOCOL"}
    )
    typesense_collection_prefix: str = Field(
        default="leo", json_schema_extra={"env": "TYPESENSE_COLLECTION_PREFIX"}
    )
    search_index_timeout_seconds: float = Field(
        default=2.0, json_schema_extra={"env": "SEARCH_INDEX_TIMEOUT_SECONDS"}
    )
    search_index_max_attempts: int = Field(
        default=2, ge=1, json_schema_extra={"env": "SEARCH_INDEX_MAX_ATTEMPTS"}
    )

    # Demo account seeded by initialize()
    demo_username: str = Field(
        default="alex", json_schema_extra={"env": "DEMO_USERNAME"}
    )
    demo_password: str = Field(
        default="password", json_schema_extra={"env": "DEMO_PASSWORD"}
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        if values.get("database_url"):
            return values
        environment = values.get("environment", os.getenv("ENV", "development"))
        if environment.lower() == "test":
            values["database_url"] = os.getenv("TEST_DATABASE_URL") or None
        else:
            values["database_url"] = os.getenv("DATABASE_URL") or None

        return values

    @property
    def database_url_obj(self) -> URL:
        """Return the database URL as a URL object using sqlalchemy's make_url."""
        if not self.database_url:
            raise ValueError("Database URL is not set.")
        return make_url(self.database_url)

    @property
    def search_index_enabled(self) -> bool:
        """True when the search index credential is configured."""
        return bool(self.typesense_api_key)

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
