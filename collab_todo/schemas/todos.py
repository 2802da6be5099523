# File: collab_todo/schemas/todos.py | Version: 1.0 | Title: Todo, todo share, bulk and attachment schemas
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from collab_todo.core.permissions import TodoPermission
from collab_todo.models.enums import TodoPriority
from collab_todo.schemas._base import BaseSchema


class _TodoDetails(BaseModel):
    priority: Optional[TodoPriority] = None
    due_date: Optional[datetime] = None
    location_name: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    recurrence_rule: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None
    tags: Optional[list[str]] = None


class TodoCreate(_TodoDetails):
    list_id: str
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    completed: bool = False


class TodoUpdate(_TodoDetails):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    completed: Optional[bool] = None
    is_public: Optional[bool] = None
    position: Optional[int] = None
    list_id: Optional[str] = None


class AttachmentOut(BaseModel):
    id: str
    name: str
    url: str
    size: int
    content_type: str
    uploaded_by: Optional[str] = None
    uploaded_at: Optional[str] = None


class TodoOut(BaseSchema):
    id: str
    user_id: str
    list_id: str
    title: str
    description: str = ""
    completed: bool
    is_public: bool
    position: int
    priority: TodoPriority
    due_date: Optional[datetime] = None
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    recurrence_rule: Optional[str] = None
    recurrence_parent_id: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = []
    attachments: list[dict[str, Any]] = []
    created_at: datetime
    updated_at: datetime


class NearbyTodoOut(TodoOut):
    distance_meters: float


# ---------------------------
# Sharing
# ---------------------------


class TodoShareCreate(BaseModel):
    email: EmailStr
    permission: TodoPermission = TodoPermission.VIEW


class TodoSharePermissionUpdate(BaseModel):
    permission: TodoPermission


class TodoShareOut(BaseSchema):
    id: str
    todo_id: str
    shared_with_email: str
    permission: TodoPermission
    created_at: datetime


# ---------------------------
# Bulk + recurrence
# ---------------------------


class BulkIds(BaseModel):
    todo_ids: list[str] = Field(min_length=1)


class BulkPriority(BulkIds):
    priority: TodoPriority


class BulkTag(BulkIds):
    tag: str = Field(min_length=1, max_length=50)


class BulkResult(BaseModel):
    count: int


class RecurringComplete(BaseModel):
    on_date: date


class RecurringCompleteOut(BaseModel):
    instance: TodoOut
    parent: TodoOut
