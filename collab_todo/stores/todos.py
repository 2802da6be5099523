# File: collab_todo/stores/todos.py | Version: 1.1 | Title: Todos of one list + single todo
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from collab_todo.backend.types import Row
from collab_todo.core.permissions import TodoPermission
from collab_todo.services.base import Unsubscribe
from collab_todo.services.todos import TodoService
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster


class TodosStore(Store[list[Row]]):
    """
    Single-todo mutations patch local state as soon as the call returns;
    bulk, attachment and recurrence operations re-fetch instead.
    """

    load_error_message = "Error loading todos"

    def __init__(self, service: TodoService, list_id: str, toaster: Optional[Toaster] = None):
        self.service = service
        self.list_id = list_id
        super().__init__(toaster)

    def _empty(self) -> list[Row]:
        return []

    def _fetch(self) -> list[Row]:
        return self.service.get_todos(self.list_id)

    def _subscribe(self, push: Callable[[list[Row]], None]) -> Optional[Unsubscribe]:
        return self.service.subscribe_to_todos(self.list_id, push)

    @property
    def todos(self) -> list[Row]:
        return self.data

    # ----- local patches -----

    def _prepend(self, todo: Row) -> None:
        # A subscription push may already have delivered the same row
        self._set_data([todo] + [t for t in self.data if t["id"] != todo["id"]])

    def _replace(self, todo: Row) -> None:
        self._set_data([todo if t["id"] == todo["id"] else t for t in self.data])

    def _drop(self, todo_id: str) -> None:
        self._set_data([t for t in self.data if t["id"] != todo_id])

    def _refresh(self, _result: Any) -> None:
        self.refetch()

    # ----- CRUD -----

    def create_todo(self, title: str, description: Optional[str] = None, **extra: Any) -> Optional[Row]:
        if not (title or "").strip():
            self._invalid("Todo title is required")
            return None
        return self._mutate(
            lambda: self.service.create_todo(self.list_id, title.strip(), description, **extra),
            failure="Error creating todo",
            success="Todo created",
            apply=self._prepend,
        )

    def update_todo(self, todo_id: str, fields: Mapping[str, Any]) -> Optional[Row]:
        if "title" in fields and not (fields["title"] or "").strip():
            self._invalid("Todo title is required")
            return None
        return self._mutate(
            lambda: self.service.update_todo(todo_id, fields),
            failure="Error updating todo",
            apply=self._replace,
        )

    def delete_todo(self, todo_id: str, confirm: Optional[Callable[[], bool]] = None) -> bool:
        if not self._confirmed(confirm):
            return False
        deleted = self._mutate(
            lambda: self.service.delete_todo(todo_id) or True,
            failure="Error deleting todo",
            success="Todo deleted",
            fallback=False,
        )
        if deleted:
            self._drop(todo_id)
        return deleted

    def toggle_todo(self, todo_id: str) -> Optional[Row]:
        return self._mutate(
            lambda: self.service.toggle_todo(todo_id),
            failure="Error toggling todo",
            apply=self._replace,
        )

    def toggle_public(self, todo_id: str) -> Optional[Row]:
        return self._mutate(
            lambda: self.service.toggle_public(todo_id),
            failure="Error updating visibility",
            success=lambda todo: "Todo is now public" if todo["is_public"] else "Todo is now private",
            apply=self._replace,
        )

    # ----- sharing -----

    def share_todo(self, todo_id: str, email: str, permission: Any = TodoPermission.VIEW) -> Optional[Row]:
        email = (email or "").strip()
        if not email or "@" not in email:
            self._invalid("A valid email address is required")
            return None
        return self._mutate(
            lambda: self.service.share_todo(todo_id, email, permission),
            failure="Error sharing todo",
            success=f"Shared with {email}",
        )

    def remove_share(self, share_id: str) -> bool:
        return self._mutate(
            lambda: self.service.remove_share(share_id) or True,
            failure="Error removing share",
            success="Share removed",
            fallback=False,
        )

    def get_shares(self, todo_id: str) -> list[Row]:
        return self._mutate(
            lambda: self.service.get_shares(todo_id),
            failure="Error loading shares",
            fallback=[],
        )

    # ----- attachments -----

    def upload_attachment(
        self, todo_id: str, filename: str, data: bytes, content_type: Optional[str] = None
    ) -> Optional[dict[str, Any]]:
        return self._mutate(
            lambda: self.service.upload_attachment(todo_id, filename, data, content_type),
            failure="Error uploading attachment",
            success="Attachment uploaded",
            apply=self._refresh,
        )

    def delete_attachment(self, todo_id: str, attachment_id: str, confirm: Optional[Callable[[], bool]] = None) -> bool:
        if not self._confirmed(confirm):
            return False
        return self._mutate(
            lambda: self.service.delete_attachment(todo_id, attachment_id) or True,
            failure="Error deleting attachment",
            success="Attachment deleted",
            apply=self._refresh,
            fallback=False,
        )

    # ----- bulk -----

    def bulk_complete(self, todo_ids: Iterable[str]) -> bool:
        ids = list(todo_ids)
        return self._bulk(lambda: self.service.bulk_complete(ids), "Error completing todos", f"{len(ids)} todos completed")

    def bulk_delete(self, todo_ids: Iterable[str], confirm: Optional[Callable[[], bool]] = None) -> bool:
        if not self._confirmed(confirm):
            return False
        ids = list(todo_ids)
        return self._bulk(lambda: self.service.bulk_delete(ids), "Error deleting todos", f"{len(ids)} todos deleted")

    def bulk_set_priority(self, todo_ids: Iterable[str], priority: Any) -> bool:
        ids = list(todo_ids)
        return self._bulk(lambda: self.service.bulk_set_priority(ids, priority), "Error updating priority", "Priority updated")

    def bulk_add_tag(self, todo_ids: Iterable[str], tag: str) -> bool:
        ids = list(todo_ids)
        return self._bulk(lambda: self.service.bulk_add_tag(ids, tag), "Error adding tag", "Tag added")

    def _bulk(self, action: Callable[[], Any], failure: str, success: str) -> bool:
        done = self._mutate(lambda: action() is not None, failure=failure, success=success, fallback=False)
        if done:
            self.refetch()
        return done

    # ----- recurrence -----

    def complete_recurring_instance(self, parent_id: str, on_date: date | datetime) -> Optional[tuple[Row, Row]]:
        return self._mutate(
            lambda: self.service.complete_recurring_instance(parent_id, on_date),
            failure="Error completing recurring todo",
            success="Recurring todo completed for today",
            apply=self._refresh,
        )


class TodoStore(Store[Optional[Row]]):
    load_error_message = "Error loading todo"

    def __init__(
        self,
        service: TodoService,
        todo_id: str,
        toaster: Optional[Toaster] = None,
        list_id: Optional[str] = None,
    ):
        self.service = service
        self.todo_id = todo_id
        self.list_id = list_id
        super().__init__(toaster)

    def _fetch(self) -> Optional[Row]:
        return self.service.get_todo_by_id(self.todo_id)

    def _subscribe(self, push: Callable[[Optional[Row]], None]) -> Optional[Unsubscribe]:
        # Todo changes are published on their list's channel
        if self.list_id is None:
            row = self.service.get_todo_by_id(self.todo_id)
            if row is None:
                return None
            self.list_id = row["list_id"]
        return self.service.subscribe_to_todo(self.todo_id, self.list_id, push)

    @property
    def todo(self) -> Optional[Row]:
        return self.data
