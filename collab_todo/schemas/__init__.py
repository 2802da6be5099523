# File: collab_todo/schemas/__init__.py | Version: 1.0 | Path: /collab_todo/schemas/__init__.py
from . import auth, geolocation, lists, notifications, preferences, todos, user

__all__ = ["auth", "geolocation", "lists", "notifications", "preferences", "todos", "user"]
