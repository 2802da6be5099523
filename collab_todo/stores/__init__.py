# File: collab_todo/stores/__init__.py | Version: 1.0 | Title: UI state containers
from .base import Status, Store
from .geolocation import GeolocationStore
from .lists import ListsStore, ListStore
from .notifications import NotificationsStore
from .preferences import PreferencesStore
from .presence import Avatar, ListPresenceStore, PresenceSummary, summarize_presence
from .sharing import ListSharingStore
from .todos import TodosStore, TodoStore
from .toasts import Toast, Toaster, ToastLevel

__all__ = [
    "Avatar",
    "GeolocationStore",
    "ListPresenceStore",
    "ListSharingStore",
    "ListStore",
    "ListsStore",
    "NotificationsStore",
    "PreferencesStore",
    "PresenceSummary",
    "Status",
    "Store",
    "Toast",
    "ToastLevel",
    "Toaster",
    "TodoStore",
    "TodosStore",
    "summarize_presence",
]
