"""Pydantic schemas for saved URLs (unscoped and profile-scoped)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UrlCreate(BaseModel):
    """Input for saving a URL."""

    url: str = Field(..., min_length=1)
    title: str | None = Field(None, max_length=512)
    notes: str | None = None


class UrlRead(BaseModel):
    """Stored URL. content and analysis are None until filled in."""

    id: int
    user_id: int
    url: str
    title: str | None = None
    notes: str | None = None
    content: str | None = None
    analysis: Any = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ContextUrlRead(UrlRead):
    """URL visible under one profile scope."""

    profile_id: int
