# File: collab_todo/services/lists.py | Version: 1.0 | Title: Lists, list sharing and list presence
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from collab_todo.backend.tables import Tables, channel_name
from collab_todo.backend.types import OrderBy, Row
from collab_todo.core.clock import as_utc, utcnow
from collab_todo.core.config import settings
from collab_todo.core.errors import BackendError, PermissionDeniedError, ValidationError
from collab_todo.core.permissions import ListPermission
from collab_todo.models.enums import PresenceStatus
from collab_todo.services.base import BaseService, Unsubscribe, enum_value

log = logging.getLogger(__name__)

# Default list first, then by position, newest first on ties
LIST_ORDER = (
    OrderBy("is_default", ascending=False),
    OrderBy("position"),
    OrderBy("created_at", ascending=False),
)

LIST_UPDATABLE_FIELDS = frozenset(
    {"title", "description", "color", "icon", "position", "location_name", "latitude", "longitude"}
)


class ListService(BaseService):
    # ---------------------------
    # Lists CRUD
    # ---------------------------

    def get_lists(self) -> list[Row]:
        self._require_user()
        return self._unwrap(self.backend.db.query(Tables.LISTS, order_by=LIST_ORDER)) or []

    def get_list_by_id(self, list_id: str) -> Optional[Row]:
        return self._unwrap(self.backend.db.query_by_id(Tables.LISTS, list_id))

    def create_list(
        self,
        title: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        *,
        location_name: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Row:
        user = self._require_user()
        fields: dict[str, Any] = {
            "user_id": user.id,
            "title": title,
            "description": description or "",
            "color": color or settings.DEFAULT_LIST_COLOR,
            "icon": icon or settings.DEFAULT_LIST_ICON,
            "is_default": False,
            "position": self.clock(),
        }
        if location_name is not None or latitude is not None or longitude is not None:
            fields.update(location_name=location_name, latitude=latitude, longitude=longitude)
        row = self._unwrap_row(self.backend.db.insert(Tables.LISTS, fields), "Failed to create list", BackendError)
        log.info("List created: %s", row["id"], extra={"list_id": row["id"], "user_id": user.id})
        return row

    def ensure_default_list(self) -> Row:
        """Return the caller's default list, creating it on first use."""
        user = self._require_user()
        existing = self._unwrap(
            self.backend.db.query(Tables.LISTS, where={"user_id": user.id, "is_default": True})
        )
        if existing:
            return existing[0]
        fields = {
            "user_id": user.id,
            "title": settings.DEFAULT_LIST_TITLE,
            "description": "",
            "color": settings.DEFAULT_LIST_COLOR,
            "icon": settings.DEFAULT_LIST_ICON,
            "is_default": True,
            "position": self.clock(),
        }
        return self._unwrap_row(
            self.backend.db.insert(Tables.LISTS, fields), "Failed to create default list", BackendError
        )

    def update_list(self, list_id: str, fields: Mapping[str, Any]) -> Row:
        unknown = set(fields) - LIST_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update list field(s): {', '.join(sorted(unknown))}")
        if not fields:
            return self._unwrap_row(self.backend.db.query_by_id(Tables.LISTS, list_id), "List not found")
        return self._unwrap_row(self.backend.db.update(Tables.LISTS, list_id, dict(fields)), "List not found")

    def delete_list(self, list_id: str) -> None:
        """Only the owner may delete; todos, shares and presence go with the list."""
        user = self._require_user()
        lst = self.get_list_by_id(list_id)
        if lst is not None and lst["user_id"] != user.id:
            raise PermissionDeniedError("Only the list owner can delete this list")
        self._unwrap(self.backend.db.remove(Tables.LISTS, list_id))
        log.info("List deleted: %s", list_id, extra={"list_id": list_id, "user_id": user.id})

    # ---------------------------
    # Sharing
    # ---------------------------

    def get_list_shares(self, list_id: str) -> list[Row]:
        result = self.backend.db.query(
            Tables.LIST_SHARES,
            where={"list_id": list_id},
            order_by=(OrderBy("created_at", ascending=False),),
        )
        return self._unwrap(result) or []

    def get_pending_invites(self) -> list[Row]:
        """Shares addressed to the caller that have not been accepted yet."""
        user = self._require_user()
        result = self.backend.db.query(
            Tables.LIST_SHARES,
            where={"accepted_at": None},
            order_by=(OrderBy("created_at", ascending=False),),
        )
        email = user.email.lower()
        return [
            share
            for share in self._unwrap(result) or []
            if share["shared_with_user_id"] == user.id or (share["shared_with_email"] or "").lower() == email
        ]

    def share_list(self, list_id: str, email: str, permission: Any = ListPermission.VIEWER) -> Row:
        """Create a pending invite; the email is not checked against existing accounts."""
        user = self._require_user()
        fields = {
            "list_id": list_id,
            "shared_with_email": email.strip(),
            "permission": enum_value(ListPermission, permission, "list permission"),
            "invited_by": user.id,
        }
        row = self._unwrap_row(self.backend.db.insert(Tables.LIST_SHARES, fields), "Failed to share list", BackendError)
        log.info("List %s shared with %s", list_id, row["shared_with_email"], extra={"list_id": list_id})
        return row

    def update_share_permission(self, share_id: str, permission: Any) -> Row:
        fields = {"permission": enum_value(ListPermission, permission, "list permission")}
        return self._unwrap_row(self.backend.db.update(Tables.LIST_SHARES, share_id, fields), "Share not found")

    def remove_share(self, share_id: str) -> None:
        self._unwrap(self.backend.db.remove(Tables.LIST_SHARES, share_id))

    def accept_invite(self, share_id: str) -> Row:
        return self._unwrap_row(
            self.backend.db.update(Tables.LIST_SHARES, share_id, {"accepted_at": utcnow()}),
            "Invite not found",
        )

    # ---------------------------
    # Presence
    # ---------------------------

    def update_presence(self, list_id: str, status: Any = PresenceStatus.VIEWING, editing_todo_id: Optional[str] = None) -> Row:
        user = self._require_user()
        result = self.backend.db.rpc(
            "upsert_presence",
            {
                "p_list_id": list_id,
                "p_user_id": user.id,
                "p_status": enum_value(PresenceStatus, status, "presence status"),
                "p_editing_todo_id": editing_todo_id or None,
            },
        )
        return self._unwrap(result)  # type: ignore[return-value]

    def get_list_presence(self, list_id: str) -> list[Row]:
        result = self.backend.db.query(
            Tables.LIST_PRESENCE,
            where={"list_id": list_id},
            order_by=(OrderBy("last_seen_at", ascending=False),),
        )
        return self._unwrap(result) or []

    def get_active_presence(self, list_id: str, now: Optional[datetime] = None) -> list[Row]:
        """Presence rows seen within the freshness window; older rows are ignored, not deleted."""
        cutoff = (as_utc(now) or utcnow()) - timedelta(seconds=settings.PRESENCE_STALE_SECONDS)
        return [row for row in self.get_list_presence(list_id) if as_utc(row["last_seen_at"]) >= cutoff]

    def leave_list(self, list_id: str) -> None:
        user = self._require_user()
        self._unwrap(self.backend.db.rpc("delete_presence", {"p_list_id": list_id, "p_user_id": user.id}))

    # ---------------------------
    # Real-time subscriptions
    # ---------------------------

    def subscribe_to_lists(self, callback: Callable[[list[Row]], None]) -> Unsubscribe:
        return self._subscribe(channel_name(Tables.LISTS), self.get_lists, callback)

    def subscribe_to_list(self, list_id: str, callback: Callable[[Optional[Row]], None]) -> Unsubscribe:
        return self._subscribe(channel_name(Tables.LISTS), lambda: self.get_list_by_id(list_id), callback)

    def subscribe_to_list_shares(self, list_id: str, callback: Callable[[list[Row]], None]) -> Unsubscribe:
        return self._subscribe(
            channel_name(Tables.LIST_SHARES, list_id), lambda: self.get_list_shares(list_id), callback
        )

    def subscribe_to_list_presence(self, list_id: str, callback: Callable[[list[Row]], None]) -> Unsubscribe:
        return self._subscribe(
            channel_name(Tables.LIST_PRESENCE, list_id), lambda: self.get_list_presence(list_id), callback
        )
