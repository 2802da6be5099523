# File: collab_todo/stores/notifications.py | Version: 1.0 | Title: Notification feed store
from __future__ import annotations

from typing import Callable, Optional

from collab_todo.backend.types import Row
from collab_todo.services.base import Unsubscribe
from collab_todo.services.notifications import NotificationService
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster


class NotificationsStore(Store[list[Row]]):
    load_error_message = "Failed to load notifications"

    def __init__(self, service: NotificationService, toaster: Optional[Toaster] = None):
        self.service = service
        super().__init__(toaster)

    def _empty(self) -> list[Row]:
        return []

    def _fetch(self) -> list[Row]:
        return self.service.get_notifications()

    def _subscribe(self, push: Callable[[list[Row]], None]) -> Optional[Unsubscribe]:
        return self.service.subscribe_to_notifications(push)

    @property
    def notifications(self) -> list[Row]:
        return self.data

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.data if not n["read"])

    def mark_as_read(self, notification_id: str) -> bool:
        def _apply(_row: Row) -> None:
            self._set_data([{**n, "read": True} if n["id"] == notification_id else n for n in self.data])

        return self._mutate(
            lambda: self.service.mark_as_read(notification_id),
            failure="Failed to mark as read",
            apply=_apply,
        ) is not None

    def mark_all_as_read(self) -> bool:
        def _apply(_count: int) -> None:
            self._set_data([{**n, "read": True} for n in self.data])

        return self._mutate(
            lambda: self.service.mark_all_as_read(),
            failure="Failed to mark all as read",
            success="All notifications marked as read",
            apply=_apply,
        ) is not None

    def delete_notification(self, notification_id: str) -> bool:
        def _apply(_result: bool) -> None:
            self._set_data([n for n in self.data if n["id"] != notification_id])

        return self._mutate(
            lambda: self.service.delete_notification(notification_id) or True,
            failure="Failed to delete notification",
            success="Notification deleted",
            apply=_apply,
            fallback=False,
        )
