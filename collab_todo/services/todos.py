# File: collab_todo/services/todos.py | Version: 1.0 | Title: Todos, todo sharing, bulk ops, attachments, recurrence
from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time
from typing import Any, Callable, Iterable, Mapping, Optional

from collab_todo.backend.tables import Tables, channel_name
from collab_todo.backend.types import BackendClient, OrderBy, Row
from collab_todo.core.clock import as_utc, now_ms, utcnow
from collab_todo.core.errors import BackendError, NotFoundError, ValidationError
from collab_todo.core.permissions import TodoPermission
from collab_todo.models.entities import gen_uuid
from collab_todo.models.enums import TodoPriority
from collab_todo.services.attachments import AttachmentStorage, LocalAttachmentStorage, safe_filename
from collab_todo.services.base import BaseService, Unsubscribe, enum_value
from collab_todo.services.recurrence import RecurrenceRule, normalize_rule

log = logging.getLogger(__name__)

TODO_ORDER = (OrderBy("position"), OrderBy("created_at", ascending=False))

TODO_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "completed",
        "is_public",
        "position",
        "list_id",
        "priority",
        "due_date",
        "location_name",
        "latitude",
        "longitude",
        "recurrence_rule",
        "notes",
        "tags",
    }
)


def _clean_tags(tags: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _validated(fields: Mapping[str, Any]) -> dict[str, Any]:
    clean = dict(fields)
    if "priority" in clean:
        clean["priority"] = enum_value(TodoPriority, clean["priority"] or TodoPriority.NONE, "priority")
    if "recurrence_rule" in clean:
        clean["recurrence_rule"] = normalize_rule(clean["recurrence_rule"])
    if "tags" in clean:
        clean["tags"] = _clean_tags(clean["tags"] or [])
    if "title" in clean and not (clean["title"] or "").strip():
        raise ValidationError("Title is required")
    return clean


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)  # type: ignore[return-value]
    return datetime.combine(value, time.min, tzinfo=UTC)


class TodoService(BaseService):
    def __init__(
        self,
        backend: BackendClient,
        *,
        clock: Callable[[], int] = now_ms,
        storage: Optional[AttachmentStorage] = None,
    ):
        super().__init__(backend, clock=clock)
        self._storage = storage

    @property
    def storage(self) -> AttachmentStorage:
        if self._storage is None:
            self._storage = LocalAttachmentStorage()
        return self._storage

    # ---------------------------
    # Core Todo CRUD
    # ---------------------------

    def get_todos(self, list_id: Optional[str] = None) -> list[Row]:
        where = {"list_id": list_id} if list_id else None
        return self._unwrap(self.backend.db.query(Tables.TODOS, where=where, order_by=TODO_ORDER)) or []

    def get_todo_by_id(self, todo_id: str) -> Optional[Row]:
        return self._unwrap(self.backend.db.query_by_id(Tables.TODOS, todo_id))

    def _get_existing(self, todo_id: str) -> Row:
        return self._unwrap_row(self.backend.db.query_by_id(Tables.TODOS, todo_id), "Todo not found")

    def create_todo(
        self,
        list_id: str,
        title: str,
        description: Optional[str] = None,
        completed: bool = False,
        **extra: Any,
    ) -> Row:
        """
        New todos are private and carry a wall-clock position key.
        `extra` accepts the optional detail fields (priority, due_date, tags, ...).
        """
        user = self._require_user()
        unknown = set(extra) - TODO_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown todo field(s): {', '.join(sorted(unknown))}")
        fields: dict[str, Any] = {
            "user_id": user.id,
            "list_id": list_id,
            "title": title,
            "description": description or "",
            "completed": bool(completed),
            "is_public": False,
            "position": self.clock(),
        }
        fields.update(_validated({k: v for k, v in extra.items() if v is not None}))
        row = self._unwrap_row(self.backend.db.insert(Tables.TODOS, fields), "Failed to create todo", BackendError)
        log.info("Todo created: %s", row["id"], extra={"list_id": list_id, "user_id": user.id})
        return row

    def update_todo(self, todo_id: str, fields: Mapping[str, Any]) -> Row:
        unknown = set(fields) - TODO_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update todo field(s): {', '.join(sorted(unknown))}")
        if not fields:
            return self._get_existing(todo_id)
        return self._unwrap_row(
            self.backend.db.update(Tables.TODOS, todo_id, _validated(fields)), "Todo not found"
        )

    def delete_todo(self, todo_id: str) -> None:
        self._unwrap(self.backend.db.remove(Tables.TODOS, todo_id))

    def _toggle(self, todo_id: str, field: str) -> Row:
        result = self.backend.db.rpc("toggle_todo_field", {"p_todo_id": todo_id, "p_field": field})
        return self._unwrap_row(result, "Todo not found")

    def toggle_todo(self, todo_id: str) -> Row:
        return self._toggle(todo_id, "completed")

    def toggle_public(self, todo_id: str) -> Row:
        return self._toggle(todo_id, "is_public")

    # ---------------------------
    # Sharing
    # ---------------------------

    def get_shares(self, todo_id: str) -> list[Row]:
        result = self.backend.db.query(
            Tables.TODO_SHARES,
            where={"todo_id": todo_id},
            order_by=(OrderBy("created_at", ascending=False),),
        )
        return self._unwrap(result) or []

    def share_todo(self, todo_id: str, email: str, permission: Any = TodoPermission.VIEW) -> Row:
        self._require_user()
        fields = {
            "todo_id": todo_id,
            "shared_with_email": email.strip(),
            "permission": enum_value(TodoPermission, permission, "todo permission"),
        }
        return self._unwrap_row(self.backend.db.insert(Tables.TODO_SHARES, fields), "Failed to share todo", BackendError)

    def remove_share(self, share_id: str) -> None:
        self._unwrap(self.backend.db.remove(Tables.TODO_SHARES, share_id))

    def update_share_permission(self, share_id: str, permission: Any) -> Row:
        fields = {"permission": enum_value(TodoPermission, permission, "todo permission")}
        return self._unwrap_row(self.backend.db.update(Tables.TODO_SHARES, share_id, fields), "Share not found")

    # ---------------------------
    # Bulk operations (sequenced; the first failure stops the batch)
    # ---------------------------

    def bulk_complete(self, todo_ids: Iterable[str]) -> list[Row]:
        return [self.update_todo(todo_id, {"completed": True}) for todo_id in todo_ids]

    def bulk_delete(self, todo_ids: Iterable[str]) -> int:
        count = 0
        for todo_id in todo_ids:
            self.delete_todo(todo_id)
            count += 1
        return count

    def bulk_set_priority(self, todo_ids: Iterable[str], priority: Any) -> list[Row]:
        value = enum_value(TodoPriority, priority, "priority")
        return [self.update_todo(todo_id, {"priority": value}) for todo_id in todo_ids]

    def bulk_add_tag(self, todo_ids: Iterable[str], tag: str) -> list[Row]:
        tag = (tag or "").strip()
        if not tag:
            raise ValidationError("Tag is required")
        updated = []
        for todo_id in todo_ids:
            todo = self._get_existing(todo_id)
            tags = list(todo.get("tags") or [])
            if tag in tags:
                updated.append(todo)
                continue
            updated.append(self.update_todo(todo_id, {"tags": tags + [tag]}))
        return updated

    # ---------------------------
    # Attachments
    # ---------------------------

    def upload_attachment(
        self, todo_id: str, filename: str, data: bytes, content_type: Optional[str] = None
    ) -> dict[str, Any]:
        user = self._require_user()
        todo = self._get_existing(todo_id)
        attachment_id = gen_uuid()
        key = f"{todo_id}/{attachment_id}-{safe_filename(filename)}"
        url = self.storage.save(key, data, content_type)
        record = {
            "id": attachment_id,
            "name": filename,
            "key": key,
            "url": url,
            "size": len(data),
            "content_type": content_type or "application/octet-stream",
            "uploaded_by": user.id,
            "uploaded_at": utcnow().isoformat(),
        }
        result = self.backend.db.update(
            Tables.TODOS, todo_id, {"attachments": list(todo.get("attachments") or []) + [record]}
        )
        try:
            self._unwrap_row(result, "Todo not found")
        except (BackendError, NotFoundError):
            self.storage.delete(key)
            raise
        return record

    def delete_attachment(self, todo_id: str, attachment_id: str) -> None:
        todo = self._get_existing(todo_id)
        attachments = list(todo.get("attachments") or [])
        match = next((a for a in attachments if a.get("id") == attachment_id), None)
        if match is None:
            raise NotFoundError("Attachment not found")
        remaining = [a for a in attachments if a.get("id") != attachment_id]
        self._unwrap_row(self.backend.db.update(Tables.TODOS, todo_id, {"attachments": remaining}), "Todo not found")
        self.storage.delete(match["key"])

    # ---------------------------
    # Recurrence
    # ---------------------------

    def complete_recurring_instance(self, parent_id: str, on_date: date | datetime) -> tuple[Row, Row]:
        """
        Record a completed copy of a repeating todo for `on_date` and move the
        parent's due date to the next occurrence after it. Returns (instance, parent).
        """
        user = self._require_user()
        parent = self._get_existing(parent_id)
        if not parent.get("recurrence_rule"):
            raise ValidationError("Todo does not repeat")
        rule = RecurrenceRule.parse(parent["recurrence_rule"])

        completed_on = _as_datetime(on_date)
        instance_fields = {
            "user_id": user.id,
            "list_id": parent["list_id"],
            "title": parent["title"],
            "description": parent.get("description") or "",
            "completed": True,
            "is_public": False,
            "position": self.clock(),
            "priority": parent.get("priority") or TodoPriority.NONE.value,
            "due_date": completed_on,
            "tags": list(parent.get("tags") or []),
            "recurrence_parent_id": parent["id"],
        }
        instance = self._unwrap_row(
            self.backend.db.insert(Tables.TODOS, instance_fields), "Failed to record instance", BackendError
        )

        anchor = as_utc(parent.get("due_date")) or completed_on
        next_due = rule.next_occurrence(anchor, after=max(anchor, completed_on))
        updated = self.update_todo(parent_id, {"due_date": next_due, "completed": False})
        log.info("Recurring todo %s advanced to %s", parent_id, next_due.isoformat(), extra={"list_id": parent["list_id"]})
        return instance, updated

    # ---------------------------
    # Real-time subscriptions
    # ---------------------------

    def subscribe_to_todos(self, list_id: str, callback: Callable[[list[Row]], None]) -> Unsubscribe:
        return self._subscribe(channel_name(Tables.TODOS, list_id), lambda: self.get_todos(list_id), callback)

    def subscribe_to_todo(self, todo_id: str, list_id: str, callback: Callable[[Optional[Row]], None]) -> Unsubscribe:
        return self._subscribe(channel_name(Tables.TODOS, list_id), lambda: self.get_todo_by_id(todo_id), callback)
