"""Enumerations stored as plain strings on user and question rows."""

from enum import StrEnum


class UserRole(StrEnum):
    """Account role. New accounts are created as USER."""

    USER = "user"
    ADMIN = "admin"


class QuestionStatus(StrEnum):
    """Question lifecycle: PENDING until answered, then ANSWERED for good."""

    PENDING = "pending"
    ANSWERED = "answered"
