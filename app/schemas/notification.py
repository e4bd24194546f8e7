"""Pydantic models for the notification feed."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    """One NotificationRecord as exposed to its recipient."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId", serialization_alias="userId")
    type: str
    job_id: Optional[str] = Field(default=None, alias="jobId", serialization_alias="jobId")
    title: str = ""
    description: str = ""
    created_at: Optional[datetime] = Field(default=None, alias="createdAt", serialization_alias="createdAt")
    read_by: List[str] = Field(default_factory=list, alias="readBy", serialization_alias="readBy")
    read: bool = False


class NotificationFeed(BaseModel):
    items: List[NotificationRead]
    unread: int


class MarkAllReadResponse(BaseModel):
    ok: bool = True
    updated: int
