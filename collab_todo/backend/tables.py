# File: collab_todo/backend/tables.py | Version: 1.0 | Title: Table enumeration + realtime channel naming
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional


class Tables(str, Enum):
    LISTS = "lists"
    LIST_SHARES = "list_shares"
    LIST_PRESENCE = "list_presence"
    TODOS = "todos"
    TODO_SHARES = "todo_shares"
    NOTIFICATIONS = "notifications"
    USER_PREFERENCES = "user_preferences"


# Column whose value names the scoped channel "<table>:<value>"
SCOPE_COLUMNS: dict[Tables, str] = {
    Tables.LIST_SHARES: "list_id",
    Tables.LIST_PRESENCE: "list_id",
    Tables.TODOS: "list_id",
    Tables.TODO_SHARES: "todo_id",
    Tables.NOTIFICATIONS: "user_id",
    Tables.USER_PREFERENCES: "user_id",
}


def channel_name(table: Tables, scope: Optional[Any] = None) -> str:
    if scope is None:
        return table.value
    return f"{table.value}:{scope}"


def channels_for_change(
    table: Tables, new: Optional[Mapping[str, Any]], old: Optional[Mapping[str, Any]]
) -> list[str]:
    """Every channel a committed change on `table` is published to."""
    names = [channel_name(table)]
    column = SCOPE_COLUMNS.get(table)
    if column:
        for row in (old, new):
            scope = row.get(column) if row else None
            if scope is not None:
                name = channel_name(table, scope)
                if name not in names:
                    names.append(name)
    return names
