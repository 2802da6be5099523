# File: collab_todo/models/__init__.py | Version: 1.0 | Title: Models Package Exports
from .entities import (
    List,
    ListPresence,
    ListShare,
    Notification,
    Todo,
    TodoShare,
    User,
    UserPreferences,
)

__all__ = [
    "User",
    "List",
    "ListShare",
    "ListPresence",
    "Todo",
    "TodoShare",
    "Notification",
    "UserPreferences",
]
