# File: collab_todo/backend/procedures.py | Version: 1.1 | Title: Server-side procedures exposed through rpc()
"""
Atomic operations the adapter runs inside a single transaction.

Each procedure receives a ProcedureContext and the raw params mapping, and
records the row changes it made through `ctx.emit()` so the adapter can
publish them after commit. Failures are raised as ProcedureError and reported
back to callers as the rpc result's `error`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import ColumnElement, delete, not_, select, true, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from collab_todo.backend.policies import visibility_clause, write_check_clause
from collab_todo.backend.tables import Tables
from collab_todo.backend.types import Identity, Row
from collab_todo.core.clock import utcnow
from collab_todo.core.config import settings
from collab_todo.models import List, ListPresence, Notification, Todo
from collab_todo.models.entities import gen_uuid
from collab_todo.models.enums import PresenceStatus

EARTH_RADIUS_METERS = 6_371_000.0
TOGGLEABLE_TODO_FIELDS = ("completed", "is_public")


class ProcedureError(Exception):
    pass


@dataclass
class ProcedureContext:
    session: Session
    identity: Optional[Identity]
    bypass_policies: bool = False
    changes: list[tuple[Tables, str, Optional[Row], Optional[Row]]] = field(default_factory=list)

    def emit(self, table: Tables, event_type: str, new: Optional[Row] = None, old: Optional[Row] = None) -> None:
        self.changes.append((table, event_type, new, old))

    def visible(self, table: Tables) -> ColumnElement[bool]:
        if self.bypass_policies:
            return true()
        return visibility_clause(table, self.identity)

    def writable(self, table: Tables, fields: Optional[list[str]] = None) -> ColumnElement[bool]:
        if self.bypass_policies:
            return true()
        return write_check_clause(table, self.identity, fields)

    def require_self(self, user_id: str) -> None:
        if self.bypass_policies:
            return
        if self.identity is None:
            raise ProcedureError("Not authenticated")
        if self.identity.id != user_id:
            raise ProcedureError("Cannot act on behalf of another user")


Procedure = Callable[[ProcedureContext, Mapping[str, Any]], Any]

PROCEDURES: dict[str, Procedure] = {}


def procedure(name: str) -> Callable[[Procedure], Procedure]:
    def _register(fn: Procedure) -> Procedure:
        PROCEDURES[name] = fn
        return fn

    return _register


def _required(params: Mapping[str, Any], key: str) -> Any:
    value = params.get(key)
    if value is None or value == "":
        raise ProcedureError(f"Missing parameter {key}")
    return value


def _float_param(params: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    value = params.get(key, default)
    if value is None:
        raise ProcedureError(f"Missing parameter {key}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ProcedureError(f"Parameter {key} must be a number")


def _dialect_insert(session: Session):
    name = session.get_bind().dialect.name
    if name == "sqlite":
        return sqlite.insert
    if name == "postgresql":
        return postgresql.insert
    raise ProcedureError(f"Upsert is not supported on {name}")


def _fetch(ctx: ProcedureContext, model, *criteria) -> Optional[Row]:
    stmt = select(model).where(*criteria).execution_options(populate_existing=True)
    obj = ctx.session.execute(stmt).scalar_one_or_none()
    return obj.to_dict() if obj is not None else None


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


# ---------------------------
# Presence
# ---------------------------


@procedure("upsert_presence")
def upsert_presence(ctx: ProcedureContext, params: Mapping[str, Any]) -> Row:
    list_id = str(_required(params, "p_list_id"))
    user_id = str(_required(params, "p_user_id"))
    try:
        status = PresenceStatus(params.get("p_status") or PresenceStatus.VIEWING.value)
    except ValueError:
        raise ProcedureError(f"Invalid presence status {params.get('p_status')!r}")
    editing_todo_id = params.get("p_editing_todo_id") or None

    ctx.require_self(user_id)
    visible = ctx.session.execute(
        select(List.id).where(List.id == list_id, ctx.visible(Tables.LISTS))
    ).first()
    if visible is None:
        raise ProcedureError("List not found")

    key = (ListPresence.list_id == list_id, ListPresence.user_id == user_id)
    before = _fetch(ctx, ListPresence, *key)

    now = utcnow()
    insert = _dialect_insert(ctx.session)
    stmt = insert(ListPresence).values(
        id=gen_uuid(),
        list_id=list_id,
        user_id=user_id,
        status=status.value,
        editing_todo_id=editing_todo_id,
        last_seen_at=now,
        created_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["list_id", "user_id"],
        set_={"status": status.value, "editing_todo_id": editing_todo_id, "last_seen_at": now},
    )
    ctx.session.execute(stmt)

    after = _fetch(ctx, ListPresence, *key)
    ctx.emit(Tables.LIST_PRESENCE, "UPDATE" if before else "INSERT", new=after, old=before)
    return after  # type: ignore[return-value]


@procedure("delete_presence")
def delete_presence(ctx: ProcedureContext, params: Mapping[str, Any]) -> bool:
    list_id = str(_required(params, "p_list_id"))
    user_id = str(_required(params, "p_user_id"))
    ctx.require_self(user_id)

    key = (ListPresence.list_id == list_id, ListPresence.user_id == user_id)
    before = _fetch(ctx, ListPresence, *key)
    if before is None:
        return False
    ctx.session.execute(delete(ListPresence).where(*key).execution_options(synchronize_session=False))
    ctx.emit(Tables.LIST_PRESENCE, "DELETE", old=before)
    return True


# ---------------------------
# Todos
# ---------------------------


@procedure("toggle_todo_field")
def toggle_todo_field(ctx: ProcedureContext, params: Mapping[str, Any]) -> Optional[Row]:
    """Flip a boolean column in one UPDATE so concurrent toggles never lose a write."""
    todo_id = str(_required(params, "p_todo_id"))
    field_name = params.get("p_field") or "completed"
    if field_name not in TOGGLEABLE_TODO_FIELDS:
        raise ProcedureError(f"Field {field_name!r} cannot be toggled")

    column = getattr(Todo, field_name)
    stmt = (
        update(Todo)
        .where(Todo.id == todo_id, ctx.writable(Tables.TODOS, [field_name]))
        .values({column: not_(column), Todo.updated_at: utcnow()})
        .execution_options(synchronize_session=False)
    )
    if ctx.session.execute(stmt).rowcount == 0:
        visible = ctx.session.execute(
            select(Todo.id).where(Todo.id == todo_id, ctx.visible(Tables.TODOS))
        ).first()
        if visible is not None:
            raise ProcedureError("row-level policy for table todos does not allow this update")
        return None

    after = _fetch(ctx, Todo, Todo.id == todo_id)
    if after is not None:
        ctx.emit(Tables.TODOS, "UPDATE", new=after, old={**after, field_name: not after[field_name]})
    return after


# ---------------------------
# Notifications
# ---------------------------


@procedure("mark_all_notifications_read")
def mark_all_notifications_read(ctx: ProcedureContext, params: Mapping[str, Any]) -> int:
    user_id = str(_required(params, "p_user_id"))
    ctx.require_self(user_id)

    criteria = (
        Notification.user_id == user_id,
        Notification.read == False,  # noqa: E712
        ctx.visible(Tables.NOTIFICATIONS),
    )
    unread = ctx.session.execute(select(Notification.id).where(*criteria)).scalars().all()
    if not unread:
        return 0
    ctx.session.execute(
        update(Notification)
        .where(Notification.id.in_(unread))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    for notification_id in unread:
        row = _fetch(ctx, Notification, Notification.id == notification_id)
        if row is not None:
            ctx.emit(Tables.NOTIFICATIONS, "UPDATE", new=row, old={**row, "read": False})
    return len(unread)


# ---------------------------
# Proximity
# ---------------------------


def _nearby(ctx: ProcedureContext, params: Mapping[str, Any], model, table: Tables, *criteria) -> list[Row]:
    lat = _float_param(params, "p_latitude")
    lon = _float_param(params, "p_longitude")
    radius = _float_param(params, "p_radius_meters", settings.PROXIMITY_RADIUS_METERS)

    stmt = select(model).where(
        ctx.visible(table),
        model.latitude.is_not(None),
        model.longitude.is_not(None),
        *criteria,
    )
    found = []
    for obj in ctx.session.execute(stmt).scalars():
        distance = haversine_meters(lat, lon, obj.latitude, obj.longitude)
        if distance <= radius:
            found.append({**obj.to_dict(), "distance_meters": round(distance, 1)})
    found.sort(key=lambda row: row["distance_meters"])
    return found


@procedure("nearby_lists")
def nearby_lists(ctx: ProcedureContext, params: Mapping[str, Any]) -> list[Row]:
    return _nearby(ctx, params, List, Tables.LISTS)


@procedure("nearby_todos")
def nearby_todos(ctx: ProcedureContext, params: Mapping[str, Any]) -> list[Row]:
    return _nearby(ctx, params, Todo, Tables.TODOS, Todo.completed == False)  # noqa: E712
