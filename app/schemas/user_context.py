"""Pydantic schemas for versioned user context and profile data counts."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UserContextRead(BaseModel):
    """One context version. The payload is opaque to storage."""

    id: int
    user_id: int
    context: Any = None
    version: int = Field(..., ge=1)
    last_updated: datetime

    model_config = {"from_attributes": True}


class ContextDataCounts(BaseModel):
    """Number of urls and chat messages moved into, or visible under, a profile."""

    urls: int = 0
    messages: int = 0
