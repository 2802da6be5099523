# File: collab_todo/services/preferences.py | Version: 1.0 | Title: Per-user preferences singleton
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from collab_todo.backend.tables import Tables, channel_name
from collab_todo.backend.types import Row
from collab_todo.core.errors import BackendError, ValidationError
from collab_todo.models.enums import ThemePreference, TimeFormat
from collab_todo.services.base import BaseService, Unsubscribe, enum_value

log = logging.getLogger(__name__)

DEFAULT_PREFERENCES: dict[str, Any] = {
    "time_format": TimeFormat.H12.value,
    "auto_hide_completed": False,
    "theme_preference": ThemePreference.SYSTEM.value,
    "default_list_id": None,
}


def _validated(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - set(DEFAULT_PREFERENCES)
    if unknown:
        raise ValidationError(f"Unknown preference(s): {', '.join(sorted(unknown))}")
    clean = dict(fields)
    if "time_format" in clean:
        clean["time_format"] = enum_value(TimeFormat, clean["time_format"], "time format")
    if "theme_preference" in clean:
        clean["theme_preference"] = enum_value(ThemePreference, clean["theme_preference"], "theme")
    if "auto_hide_completed" in clean:
        clean["auto_hide_completed"] = bool(clean["auto_hide_completed"])
    return clean


class PreferencesService(BaseService):
    def _find(self, user_id: str) -> Row | None:
        rows = self._unwrap(self.backend.db.query(Tables.USER_PREFERENCES, where={"user_id": user_id}))
        return rows[0] if rows else None

    def get_preferences(self) -> Row:
        """The caller's preferences; the default row is created on first read."""
        user = self._require_user()
        existing = self._find(user.id)
        if existing is not None:
            return existing

        result = self.backend.db.insert(Tables.USER_PREFERENCES, {"user_id": user.id, **DEFAULT_PREFERENCES})
        if result.error:
            # Another session may have created the row first
            existing = self._find(user.id)
            if existing is not None:
                return existing
        log.debug("Created default preferences", extra={"user_id": user.id})
        return self._unwrap_row(result, "Failed to create preferences", BackendError)

    def update_preferences(self, fields: Mapping[str, Any]) -> Row:
        clean = _validated(fields)
        current = self.get_preferences()
        if not clean:
            return current
        return self._unwrap_row(
            self.backend.db.update(Tables.USER_PREFERENCES, current["id"], clean), "Preferences not found"
        )

    def subscribe_to_preferences(self, callback: Callable[[Row], None]) -> Unsubscribe:
        user = self._require_user()
        return self._subscribe(channel_name(Tables.USER_PREFERENCES, user.id), self.get_preferences, callback)
