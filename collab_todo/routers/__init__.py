# File: collab_todo/routers/__init__.py | Version: 1.0 | Path: /collab_todo/routers/__init__.py
"""
Router package exports.

Keeping these explicit helps static analyzers and avoids surprises
when importing submodules like: `from collab_todo.routers import todos as todos_router`.
"""
from . import auth, auth_extras, geolocation, health, lists, notifications, preferences, presence, sharing, todos

__all__ = [
    "auth",
    "auth_extras",
    "geolocation",
    "health",
    "lists",
    "notifications",
    "preferences",
    "presence",
    "sharing",
    "todos",
]
