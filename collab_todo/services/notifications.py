# File: collab_todo/services/notifications.py | Version: 1.0 | Title: Per-user notification feed
from __future__ import annotations

from typing import Any, Callable, Optional

from collab_todo.backend.tables import Tables, channel_name
from collab_todo.backend.types import OrderBy, Row
from collab_todo.core.errors import BackendError, ValidationError
from collab_todo.models.enums import NotificationType
from collab_todo.services.base import BaseService, Unsubscribe, enum_value

NEWEST_FIRST = (OrderBy("created_at", ascending=False),)


class NotificationService(BaseService):
    def get_notifications(self, limit: Optional[int] = None) -> list[Row]:
        user = self._require_user()
        rows = self._unwrap(
            self.backend.db.query(Tables.NOTIFICATIONS, where={"user_id": user.id}, order_by=NEWEST_FIRST)
        ) or []
        return rows[:limit] if limit else rows

    def get_unread_count(self) -> int:
        user = self._require_user()
        rows = self._unwrap(
            self.backend.db.query(Tables.NOTIFICATIONS, where={"user_id": user.id, "read": False})
        )
        return len(rows or [])

    def create_notification(
        self,
        notification_type: Any,
        title: str,
        body: str = "",
        action_url: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Row:
        """Rows are written for the caller unless `user_id` names someone the backend lets us write for."""
        user = self._require_user()
        if not (title or "").strip():
            raise ValidationError("Notification title is required")
        fields = {
            "user_id": user_id or user.id,
            "type": enum_value(NotificationType, notification_type, "notification type"),
            "title": title.strip(),
            "body": body or "",
            "read": False,
            "action_url": action_url,
        }
        return self._unwrap_row(
            self.backend.db.insert(Tables.NOTIFICATIONS, fields), "Failed to create notification", BackendError
        )

    def mark_as_read(self, notification_id: str) -> Row:
        return self._unwrap_row(
            self.backend.db.update(Tables.NOTIFICATIONS, notification_id, {"read": True}), "Notification not found"
        )

    def mark_all_as_read(self) -> int:
        user = self._require_user()
        return self._unwrap(self.backend.db.rpc("mark_all_notifications_read", {"p_user_id": user.id})) or 0

    def delete_notification(self, notification_id: str) -> None:
        self._unwrap(self.backend.db.remove(Tables.NOTIFICATIONS, notification_id))

    def subscribe_to_notifications(self, callback: Callable[[list[Row]], None]) -> Unsubscribe:
        user = self._require_user()
        return self._subscribe(channel_name(Tables.NOTIFICATIONS, user.id), self.get_notifications, callback)
