# File: collab_todo/schemas/preferences.py | Version: 1.0 | Title: User preference schemas
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from collab_todo.models.enums import ThemePreference, TimeFormat
from collab_todo.schemas._base import BaseSchema


class PreferencesOut(BaseSchema):
    id: str
    user_id: str
    time_format: TimeFormat
    auto_hide_completed: bool
    theme_preference: ThemePreference
    default_list_id: Optional[str] = None


class PreferencesUpdate(BaseModel):
    time_format: Optional[TimeFormat] = None
    auto_hide_completed: Optional[bool] = None
    theme_preference: Optional[ThemePreference] = None
    default_list_id: Optional[str] = None
