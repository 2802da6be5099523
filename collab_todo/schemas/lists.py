# File: collab_todo/schemas/lists.py | Version: 1.0 | Title: List, share and presence schemas
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from collab_todo.core.permissions import ListPermission
from collab_todo.models.enums import PresenceStatus
from collab_todo.schemas._base import BaseSchema


class _ListLocation(BaseModel):
    location_name: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class ListCreate(_ListLocation):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)


class ListUpdate(_ListLocation):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)
    position: Optional[int] = None


class ListOut(BaseSchema):
    id: str
    user_id: str
    title: str
    description: str = ""
    color: str
    icon: str
    is_default: bool
    position: int
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class NearbyListOut(ListOut):
    distance_meters: float


# ---------------------------
# Sharing
# ---------------------------


class ShareCreate(BaseModel):
    email: EmailStr
    permission: ListPermission = ListPermission.VIEWER


class SharePermissionUpdate(BaseModel):
    permission: ListPermission


class ListShareOut(BaseSchema):
    id: str
    list_id: str
    shared_with_user_id: Optional[str] = None
    shared_with_email: str
    permission: ListPermission
    invited_by: str
    accepted_at: Optional[datetime] = None
    created_at: datetime


# ---------------------------
# Presence
# ---------------------------


class PresenceUpdate(BaseModel):
    status: PresenceStatus = PresenceStatus.VIEWING
    editing_todo_id: Optional[str] = None


class PresenceOut(BaseSchema):
    id: str
    list_id: str
    user_id: str
    status: PresenceStatus
    editing_todo_id: Optional[str] = None
    last_seen_at: datetime


class AvatarOut(BaseSchema):
    user_id: str
    initials: str
    label: str
    editing: bool
    editing_todo_id: Optional[str] = None


class PresenceSummaryOut(BaseSchema):
    avatars: list[AvatarOut]
    overflow: int
