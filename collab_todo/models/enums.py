# File: collab_todo/models/enums.py | Version: 1.0 | Title: Closed value sets stored as strings
from __future__ import annotations

from enum import Enum


class PresenceStatus(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"


class TodoPriority(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NotificationType(str, Enum):
    NEW_TODO = "new_todo"
    DUE_REMINDER = "due_reminder"
    SHARED_LIST = "shared_list"
    EVENING_REMINDER = "evening_reminder"
    LOCATION_REMINDER = "location_reminder"
    LIST_UPDATE = "list_update"


class TimeFormat(str, Enum):
    H12 = "12h"
    H24 = "24h"


class ThemePreference(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"
