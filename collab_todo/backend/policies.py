# File: collab_todo/backend/policies.py | Version: 1.1 | Title: Row visibility + write checks (stand-in for hosted row-level policies)
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import ColumnElement, false, func, or_, select

from collab_todo.backend.tables import Tables
from collab_todo.backend.types import Identity
from collab_todo.models import List, ListPresence, ListShare, Notification, Todo, TodoShare, UserPreferences


def _addressed_to(identity: Identity) -> ColumnElement[bool]:
    return or_(
        ListShare.shared_with_user_id == identity.id,
        func.lower(ListShare.shared_with_email) == identity.email.lower(),
    )


def visible_list_ids(identity: Identity):
    """Subquery of list ids the identity owns or holds an accepted share on."""
    shared = (
        select(ListShare.list_id)
        .where(ListShare.accepted_at.is_not(None), _addressed_to(identity))
        .correlate(None)
    )
    return (
        select(List.id)
        .where(or_(List.user_id == identity.id, List.id.in_(shared)))
        .correlate(None)
    )


def _lists(identity: Identity) -> ColumnElement[bool]:
    return List.id.in_(visible_list_ids(identity))


def _list_shares(identity: Identity) -> ColumnElement[bool]:
    return or_(
        ListShare.list_id.in_(visible_list_ids(identity)),
        _addressed_to(identity),
    )


def _list_presence(identity: Identity) -> ColumnElement[bool]:
    return ListPresence.list_id.in_(visible_list_ids(identity))


def _todos(identity: Identity) -> ColumnElement[bool]:
    shared_to_me = select(TodoShare.todo_id).where(
        func.lower(TodoShare.shared_with_email) == identity.email.lower()
    ).correlate(None)
    return or_(
        Todo.user_id == identity.id,
        Todo.list_id.in_(visible_list_ids(identity)),
        Todo.is_public == True,  # noqa: E712
        Todo.id.in_(shared_to_me),
    )


def _todo_shares(identity: Identity) -> ColumnElement[bool]:
    reachable = select(Todo.id).where(
        or_(Todo.user_id == identity.id, Todo.list_id.in_(visible_list_ids(identity)))
    ).correlate(None)
    return or_(
        TodoShare.todo_id.in_(reachable),
        func.lower(TodoShare.shared_with_email) == identity.email.lower(),
    )


def _notifications(identity: Identity) -> ColumnElement[bool]:
    return Notification.user_id == identity.id


def _user_preferences(identity: Identity) -> ColumnElement[bool]:
    return UserPreferences.user_id == identity.id


_POLICIES = {
    Tables.LISTS: _lists,
    Tables.LIST_SHARES: _list_shares,
    Tables.LIST_PRESENCE: _list_presence,
    Tables.TODOS: _todos,
    Tables.TODO_SHARES: _todo_shares,
    Tables.NOTIFICATIONS: _notifications,
    Tables.USER_PREFERENCES: _user_preferences,
}


def visibility_clause(table: Tables, identity: Optional[Identity]) -> ColumnElement[bool]:
    """WHERE clause limiting `table` to the rows `identity` may read."""
    if identity is None:
        return false()
    return _POLICIES[table](identity)


# ---------------------------
# Insert checks (stricter than visibility)
# ---------------------------


def writable_list_ids(identity: Identity):
    """Lists the identity owns or edits through an accepted editor/owner share."""
    editing = (
        select(ListShare.list_id)
        .where(
            ListShare.accepted_at.is_not(None),
            ListShare.permission.in_(("editor", "owner")),
            _addressed_to(identity),
        )
        .correlate(None)
    )
    return (
        select(List.id)
        .where(or_(List.user_id == identity.id, List.id.in_(editing)))
        .correlate(None)
    )


def _insert_lists(identity: Identity) -> ColumnElement[bool]:
    return List.user_id == identity.id


def _insert_list_shares(identity: Identity) -> ColumnElement[bool]:
    owned = select(List.id).where(List.user_id == identity.id).correlate(None)
    return ListShare.list_id.in_(owned)


def _insert_todos(identity: Identity) -> ColumnElement[bool]:
    return Todo.list_id.in_(writable_list_ids(identity))


def editable_todo_ids(identity: Identity):
    """Todos the identity owns, can edit through their list, or holds an `edit` share on."""
    shared_for_edit = (
        select(TodoShare.todo_id)
        .where(
            func.lower(TodoShare.shared_with_email) == identity.email.lower(),
            TodoShare.permission == "edit",
        )
        .correlate(None)
    )
    return (
        select(Todo.id)
        .where(
            or_(
                Todo.user_id == identity.id,
                Todo.list_id.in_(writable_list_ids(identity)),
                Todo.id.in_(shared_for_edit),
            )
        )
        .correlate(None)
    )


def _insert_todo_shares(identity: Identity) -> ColumnElement[bool]:
    return TodoShare.todo_id.in_(editable_todo_ids(identity))


_INSERT_CHECKS = {
    Tables.LISTS: _insert_lists,
    Tables.LIST_SHARES: _insert_list_shares,
    Tables.TODOS: _insert_todos,
    Tables.TODO_SHARES: _insert_todo_shares,
}


def insert_check_clause(table: Tables, identity: Optional[Identity]) -> ColumnElement[bool]:
    """WHERE clause a freshly inserted row must satisfy; falls back to visibility."""
    if identity is None:
        return false()
    check = _INSERT_CHECKS.get(table)
    if check is None:
        return visibility_clause(table, identity)
    return check(identity)


# ---------------------------
# Update / delete checks (`fields` is None for a delete)
# ---------------------------

# Columns an invitee may set on a share addressed to them
INVITEE_SHARE_FIELDS = frozenset({"accepted_at"})

FieldNames = Optional[Iterable[str]]


def _owned_list_ids(identity: Identity):
    return select(List.id).where(List.user_id == identity.id).correlate(None)


def _write_lists(identity: Identity, fields: FieldNames) -> ColumnElement[bool]:
    return List.user_id == identity.id


def _write_list_shares(identity: Identity, fields: FieldNames) -> ColumnElement[bool]:
    owned = ListShare.list_id.in_(_owned_list_ids(identity))
    # The addressee may accept or decline, nothing else
    if fields is None or set(fields) <= INVITEE_SHARE_FIELDS:
        return or_(owned, _addressed_to(identity))
    return owned


def _write_list_presence(identity: Identity, fields: FieldNames) -> ColumnElement[bool]:
    return ListPresence.user_id == identity.id


def _write_todos(identity: Identity, fields: FieldNames) -> ColumnElement[bool]:
    return Todo.id.in_(editable_todo_ids(identity))


def _write_todo_shares(identity: Identity, fields: FieldNames) -> ColumnElement[bool]:
    return TodoShare.todo_id.in_(editable_todo_ids(identity))


_WRITE_CHECKS = {
    Tables.LISTS: _write_lists,
    Tables.LIST_SHARES: _write_list_shares,
    Tables.LIST_PRESENCE: _write_list_presence,
    Tables.TODOS: _write_todos,
    Tables.TODO_SHARES: _write_todo_shares,
}


def write_check_clause(table: Tables, identity: Optional[Identity], fields: FieldNames = None) -> ColumnElement[bool]:
    """WHERE clause an existing row must satisfy before `identity` updates `fields` or deletes it."""
    if identity is None:
        return false()
    check = _WRITE_CHECKS.get(table)
    if check is None:
        return visibility_clause(table, identity)
    return check(identity, fields)
