"""Pydantic schemas for chat messages (unscoped and profile-scoped)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ChatMessageCreate(BaseModel):
    """Input for appending a chat message."""

    role: str
    content: str


class ChatMessageRead(BaseModel):
    """Stored chat message."""

    id: int
    user_id: int
    role: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ContextChatMessageRead(ChatMessageRead):
    """Chat message visible under one profile scope."""

    profile_id: int
