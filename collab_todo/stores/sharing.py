# File: collab_todo/stores/sharing.py | Version: 1.0 | Title: Shares of one list
from __future__ import annotations

from typing import Any, Callable, Optional

from collab_todo.backend.types import Row
from collab_todo.core.permissions import ListPermission
from collab_todo.services.base import Unsubscribe
from collab_todo.services.lists import ListService
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster


class ListSharingStore(Store[list[Row]]):
    """Every successful change re-fetches; a failed one leaves the last snapshot untouched."""

    load_error_message = "Failed to load shares"

    def __init__(self, service: ListService, list_id: Optional[str], toaster: Optional[Toaster] = None):
        self.service = service
        self.list_id = list_id
        super().__init__(toaster)

    def _empty(self) -> list[Row]:
        return []

    def _fetch(self) -> list[Row]:
        if not self.list_id:
            return []
        return self.service.get_list_shares(self.list_id)

    def _subscribe(self, push: Callable[[list[Row]], None]) -> Optional[Unsubscribe]:
        if not self.list_id:
            return None
        return self.service.subscribe_to_list_shares(self.list_id, push)

    @property
    def shares(self) -> list[Row]:
        return self.data

    def _refresh(self, _result: Any) -> None:
        self.refetch()

    def share_list(self, email: str, permission: Any = ListPermission.VIEWER) -> Optional[Row]:
        email = (email or "").strip()
        if not email or "@" not in email:
            self._invalid("A valid email address is required")
            return None
        if not self.list_id:
            self._invalid("No list selected")
            return None
        list_id = self.list_id
        return self._mutate(
            lambda: self.service.share_list(list_id, email, permission),
            failure="Failed to share list",
            success=lambda share: f"Invite sent to {share['shared_with_email']}",
            apply=self._refresh,
        )

    def update_permission(self, share_id: str, permission: Any) -> Optional[Row]:
        return self._mutate(
            lambda: self.service.update_share_permission(share_id, permission),
            failure="Failed to update permission",
            success="Permission updated",
            apply=self._refresh,
        )

    def remove_share(self, share_id: str, confirm: Optional[Callable[[], bool]] = None) -> bool:
        if not self._confirmed(confirm):
            return False
        return self._mutate(
            lambda: self.service.remove_share(share_id) or True,
            failure="Failed to remove share",
            success="Access removed",
            apply=self._refresh,
            fallback=False,
        )

    def accept_invite(self, share_id: str) -> Optional[Row]:
        return self._mutate(
            lambda: self.service.accept_invite(share_id),
            failure="Failed to accept invite",
            success="Invite accepted",
            apply=self._refresh,
        )
