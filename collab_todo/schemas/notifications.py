# File: collab_todo/schemas/notifications.py | Version: 1.0 | Title: Notification schemas
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from collab_todo.models.enums import NotificationType
from collab_todo.schemas._base import BaseSchema


class NotificationCreate(BaseModel):
    type: NotificationType
    title: str = Field(min_length=1, max_length=255)
    body: str = ""
    action_url: Optional[str] = Field(default=None, max_length=500)


class NotificationOut(BaseSchema):
    id: str
    user_id: str
    type: NotificationType
    title: str
    body: str = ""
    read: bool
    action_url: Optional[str] = None
    created_at: datetime


class UnreadCount(BaseModel):
    unread: int


class MarkedRead(BaseModel):
    updated: int
