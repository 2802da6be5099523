# File: collab_todo/stores/presence.py | Version: 1.0 | Title: Collaborator presence for one list + avatar summary
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Mapping, Optional

from collab_todo.backend.types import Identity, Row
from collab_todo.core.clock import as_utc, utcnow
from collab_todo.core.config import settings
from collab_todo.models.enums import PresenceStatus
from collab_todo.services.base import Unsubscribe
from collab_todo.services.lists import ListService
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster

MAX_VISIBLE_AVATARS = 5


@dataclass(frozen=True)
class Avatar:
    user_id: str
    initials: str
    label: str
    editing: bool = False
    editing_todo_id: Optional[str] = None


@dataclass(frozen=True)
class PresenceSummary:
    avatars: list[Avatar] = field(default_factory=list)
    overflow: int = 0


def initials_for(display_name: Optional[str], email: Optional[str]) -> str:
    if display_name and display_name.strip():
        return "".join(part[0] for part in display_name.split()).upper()
    if email:
        return email[0].upper()
    return "?"


def summarize_presence(
    rows: list[Row],
    users: Optional[Mapping[str, Identity]] = None,
    limit: int = MAX_VISIBLE_AVATARS,
) -> PresenceSummary:
    """First `limit` collaborators as avatars; the rest are only counted."""
    users = users or {}
    avatars = []
    for row in rows[:limit]:
        who = users.get(row["user_id"])
        display_name = who.display_name if who else None
        email = who.email if who else None
        avatars.append(
            Avatar(
                user_id=row["user_id"],
                initials=initials_for(display_name, email),
                label=display_name or email or row["user_id"],
                editing=row.get("status") == PresenceStatus.EDITING.value,
                editing_todo_id=row.get("editing_todo_id"),
            )
        )
    return PresenceSummary(avatars=avatars, overflow=max(0, len(rows) - limit))


class ListPresenceStore(Store[list[Row]]):
    """
    Announces "viewing" on mount and leaves on unmount. The caller drives
    the heartbeat: poll `heartbeat_due()` and call `heartbeat()`.
    """

    load_error_message = "Failed to load presence"

    def __init__(
        self,
        service: ListService,
        list_id: str,
        toaster: Optional[Toaster] = None,
        *,
        heartbeat_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.service = service
        self.list_id = list_id
        self.heartbeat_seconds = heartbeat_seconds or settings.PRESENCE_HEARTBEAT_SECONDS
        self.clock = clock
        self.presence_status = PresenceStatus.VIEWING
        self.editing_todo_id: Optional[str] = None
        self.last_heartbeat: Optional[datetime] = None
        super().__init__(toaster)

    def _empty(self) -> list[Row]:
        return []

    def _fetch(self) -> list[Row]:
        return self.service.get_list_presence(self.list_id)

    def _subscribe(self, push: Callable[[list[Row]], None]) -> Optional[Unsubscribe]:
        return self.service.subscribe_to_list_presence(self.list_id, push)

    def _on_mount(self) -> None:
        self._announce(PresenceStatus.VIEWING, None)

    def _on_unmount(self) -> None:
        self.last_heartbeat = None
        self._mutate(lambda: self.service.leave_list(self.list_id), failure="Failed to leave list")

    def _announce(self, status: PresenceStatus, editing_todo_id: Optional[str]) -> Optional[Row]:
        row = self._mutate(
            lambda: self.service.update_presence(self.list_id, status, editing_todo_id),
            failure="Failed to update presence",
        )
        if row is not None:
            self.presence_status = status
            self.editing_todo_id = editing_todo_id
            self.last_heartbeat = self.clock()
        return row

    def start_editing(self, todo_id: str) -> Optional[Row]:
        return self._announce(PresenceStatus.EDITING, todo_id)

    def stop_editing(self) -> Optional[Row]:
        return self._announce(PresenceStatus.VIEWING, None)

    def heartbeat(self) -> Optional[Row]:
        if not self.mounted:
            return None
        return self._announce(self.presence_status, self.editing_todo_id)

    def heartbeat_due(self, now: Optional[datetime] = None) -> bool:
        if not self.mounted:
            return False
        if self.last_heartbeat is None:
            return True
        elapsed = (as_utc(now) or self.clock()) - self.last_heartbeat
        return elapsed >= timedelta(seconds=self.heartbeat_seconds)

    def active(self, now: Optional[datetime] = None) -> list[Row]:
        cutoff = (as_utc(now) or self.clock()) - timedelta(seconds=settings.PRESENCE_STALE_SECONDS)
        return [row for row in self.data if as_utc(row["last_seen_at"]) >= cutoff]

    def summary(self, users: Optional[Mapping[str, Identity]] = None, now: Optional[datetime] = None) -> PresenceSummary:
        return summarize_presence(self.active(now), users)

    @property
    def presence(self) -> list[Row]:
        return self.data

    def __repr__(self) -> str:
        return f"<ListPresenceStore list={self.list_id} status={self.status.value} rows={len(self.data)}>"
