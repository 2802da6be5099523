# File: collab_todo/stores/lists.py | Version: 1.0 | Title: All-lists and single-list stores
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from collab_todo.backend.types import Row
from collab_todo.services.base import Unsubscribe
from collab_todo.services.lists import ListService
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster


class ListsStore(Store[list[Row]]):
    """Lists visible to the caller. Mutations rely on the next subscription push for local state."""

    load_error_message = "Failed to load lists"

    def __init__(self, service: ListService, toaster: Optional[Toaster] = None):
        self.service = service
        super().__init__(toaster)

    def _empty(self) -> list[Row]:
        return []

    def _fetch(self) -> list[Row]:
        return self.service.get_lists()

    def _subscribe(self, push: Callable[[list[Row]], None]) -> Optional[Unsubscribe]:
        return self.service.subscribe_to_lists(push)

    @property
    def lists(self) -> list[Row]:
        return self.data

    def create_list(
        self,
        title: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        **location: Any,
    ) -> Optional[Row]:
        if not (title or "").strip():
            self._invalid("List title is required")
            return None
        return self._mutate(
            lambda: self.service.create_list(title.strip(), description, color, icon, **location),
            failure="Failed to create list",
            success=lambda row: f'List "{row["title"]}" created',
        )

    def update_list(self, list_id: str, fields: Mapping[str, Any]) -> Optional[Row]:
        if "title" in fields and not (fields["title"] or "").strip():
            self._invalid("List title is required")
            return None
        return self._mutate(
            lambda: self.service.update_list(list_id, fields),
            failure="Failed to update list",
            success="List updated",
        )

    def delete_list(self, list_id: str, confirm: Optional[Callable[[], bool]] = None) -> bool:
        if not self._confirmed(confirm):
            return False
        return self._mutate(
            lambda: self.service.delete_list(list_id) or True,
            failure="Failed to delete list",
            success="List deleted",
            fallback=False,
        )


class ListStore(Store[Optional[Row]]):
    load_error_message = "Failed to load list"

    def __init__(self, service: ListService, list_id: Optional[str], toaster: Optional[Toaster] = None):
        self.service = service
        self.list_id = list_id
        super().__init__(toaster)

    def _fetch(self) -> Optional[Row]:
        if not self.list_id:
            return None
        return self.service.get_list_by_id(self.list_id)

    def _subscribe(self, push: Callable[[Optional[Row]], None]) -> Optional[Unsubscribe]:
        if not self.list_id:
            return None
        return self.service.subscribe_to_list(self.list_id, push)

    @property
    def current_list(self) -> Optional[Row]:
        return self.data
