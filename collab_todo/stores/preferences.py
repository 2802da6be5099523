# File: collab_todo/stores/preferences.py | Version: 1.0 | Title: User preferences store
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from collab_todo.backend.types import Row
from collab_todo.services.base import Unsubscribe
from collab_todo.services.preferences import PreferencesService
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster


class PreferencesStore(Store[Optional[Row]]):
    """Load failures only set `error`: preferences are not worth a toast."""

    load_error_message = "Failed to load preferences"
    toast_load_errors = False

    def __init__(self, service: PreferencesService, toaster: Optional[Toaster] = None):
        self.service = service
        super().__init__(toaster)

    def _fetch(self) -> Optional[Row]:
        return self.service.get_preferences()

    def _subscribe(self, push: Callable[[Optional[Row]], None]) -> Optional[Unsubscribe]:
        return self.service.subscribe_to_preferences(push)

    @property
    def preferences(self) -> Optional[Row]:
        return self.data

    def update_preferences(self, fields: Mapping[str, Any]) -> Optional[Row]:
        return self._mutate(
            lambda: self.service.update_preferences(fields),
            failure="Failed to update preferences",
            success="Preferences updated",
            apply=self._set_data,
        )

    def set_time_format(self, time_format: str) -> Optional[Row]:
        return self.update_preferences({"time_format": time_format})

    def set_auto_hide_completed(self, auto_hide: bool) -> Optional[Row]:
        return self.update_preferences({"auto_hide_completed": auto_hide})

    def set_theme_preference(self, theme: str) -> Optional[Row]:
        return self.update_preferences({"theme_preference": theme})

    def set_default_list(self, list_id: Optional[str]) -> Optional[Row]:
        return self.update_preferences({"default_list_id": list_id})
