# File: collab_todo/backend/sql.py | Version: 1.1 | Title: SQLAlchemy-backed Backend Adapter
"""
The hosted data/auth/realtime service, implemented over a SQLAlchemy session.

Reads and writes go through the row visibility policies unless the backend
was built with `bypass_policies=True` (seeding, admin tooling). Every
committed change is published to the realtime hub on the table channel and
its scoped channel. Failures come back as `BackendResult.error`; nothing in
this module raises for a storage problem.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import ColumnElement, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from collab_todo.backend.policies import insert_check_clause, visibility_clause, write_check_clause
from collab_todo.backend.procedures import PROCEDURES, ProcedureContext, ProcedureError
from collab_todo.backend.realtime import ChangeEvent, RealtimeHub
from collab_todo.backend.tables import Tables, channels_for_change
from collab_todo.backend.types import BackendResult, Identity, OrderBy, Row
from collab_todo.models import List, ListPresence, ListShare, Notification, Todo, TodoShare, User, UserPreferences

log = logging.getLogger(__name__)

MODEL_REGISTRY: dict[Tables, type] = {
    Tables.LISTS: List,
    Tables.LIST_SHARES: ListShare,
    Tables.LIST_PRESENCE: ListPresence,
    Tables.TODOS: Todo,
    Tables.TODO_SHARES: TodoShare,
    Tables.NOTIFICATIONS: Notification,
    Tables.USER_PREFERENCES: UserPreferences,
}
_TABLE_BY_MODEL = {model: table for table, model in MODEL_REGISTRY.items()}


class _UnknownColumn(Exception):
    pass


def identity_from_user(user: Optional[User]) -> Optional[Identity]:
    if user is None:
        return None
    return Identity(id=str(user.id), email=user.email, display_name=user.full_name)


class SqlAuth:
    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity

    def get_user(self) -> Optional[Identity]:
        return self._identity


class SqlDatabase:
    def __init__(self, session: Session, realtime: RealtimeHub, auth: SqlAuth, bypass_policies: bool = False):
        self.session = session
        self.realtime = realtime
        self.auth = auth
        self.bypass_policies = bypass_policies

    # ---------- helpers ----------

    def _visible(self, table: Tables) -> ColumnElement[bool]:
        if self.bypass_policies:
            return true()
        return visibility_clause(table, self.auth.get_user())

    def _insertable(self, table: Tables, row_id: str) -> bool:
        if self.bypass_policies:
            return True
        model = MODEL_REGISTRY[table]
        stmt = select(model.id).where(model.id == str(row_id), insert_check_clause(table, self.auth.get_user()))
        return self.session.execute(stmt).first() is not None

    def _writable(self, table: Tables, row_id: str, fields: Optional[Mapping[str, Any]] = None) -> bool:
        if self.bypass_policies:
            return True
        model = MODEL_REGISTRY[table]
        check = write_check_clause(table, self.auth.get_user(), None if fields is None else list(fields))
        stmt = select(model.id).where(model.id == str(row_id), check)
        return self.session.execute(stmt).first() is not None

    @staticmethod
    def _forbidden(action: str, table: Tables) -> BackendResult:
        log.info("Row-level policy refused %s on %s", action, table.value, extra={"table": table.value})
        return BackendResult(error=f"row-level policy for table {table.value} does not allow this {action}")

    @staticmethod
    def _column(model: type, name: str):
        if name not in model.__table__.columns:  # type: ignore[attr-defined]
            raise _UnknownColumn(f"column {name!r} does not exist on {model.__tablename__}")  # type: ignore[attr-defined]
        return getattr(model, name)

    def _check_fields(self, model: type, fields: Mapping[str, Any]) -> None:
        for name in fields:
            self._column(model, name)

    def _find(self, table: Tables, row_id: str):
        model = MODEL_REGISTRY[table]
        stmt = (
            select(model)
            .where(model.id == str(row_id), self._visible(table))
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _fail(self, action: str, table: Any, exc: Exception) -> BackendResult:
        self.session.rollback()
        message = str(getattr(exc, "orig", None) or exc)
        log.warning("Backend %s on %s failed: %s", action, table, message, extra={"table": str(table)})
        return BackendResult(error=message)

    def _publish(self, table: Tables, event_type: str, new: Optional[Row], old: Optional[Row]) -> None:
        event = ChangeEvent(table=table.value, event_type=event_type, new=new, old=old)
        names = channels_for_change(table, new, old)
        delivered = self.realtime.publish_many(names, event)
        log.debug(
            "Published %s on %s to %d channel(s)",
            event_type,
            table.value,
            delivered,
            extra={"table": table.value, "event_type": event_type},
        )

    # ---------- Database contract ----------

    def query(
        self,
        table: Tables,
        *,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[OrderBy] = (),
    ) -> BackendResult[list[Row]]:
        model = MODEL_REGISTRY[table]
        try:
            stmt = select(model).where(self._visible(table))
            for name, value in (where or {}).items():
                column = self._column(model, name)
                stmt = stmt.where(column.is_(None) if value is None else column == value)
            for order in order_by:
                column = self._column(model, order.column)
                stmt = stmt.order_by(column.asc() if order.ascending else column.desc())
            rows = self.session.execute(stmt.execution_options(populate_existing=True)).scalars().all()
        except _UnknownColumn as exc:
            return BackendResult(error=str(exc))
        except SQLAlchemyError as exc:
            return self._fail("query", table.value, exc)
        return BackendResult(data=[row.to_dict() for row in rows])

    def query_by_id(self, table: Tables, row_id: str) -> BackendResult[Row]:
        try:
            obj = self._find(table, row_id)
        except SQLAlchemyError as exc:
            return self._fail("query_by_id", table.value, exc)
        return BackendResult(data=obj.to_dict() if obj is not None else None)

    def insert(self, table: Tables, fields: Mapping[str, Any]) -> BackendResult[Row]:
        model = MODEL_REGISTRY[table]
        try:
            self._check_fields(model, fields)
        except _UnknownColumn as exc:
            return BackendResult(error=str(exc))

        try:
            obj = model(**dict(fields))
            self.session.add(obj)
            self.session.flush()
            if not self._insertable(table, obj.id):
                self.session.rollback()
                return BackendResult(error=f"new row violates row-level policy for table {table.value}")
            row = obj.to_dict()
            self.session.commit()
        except SQLAlchemyError as exc:
            return self._fail("insert", table.value, exc)

        self._publish(table, "INSERT", row, None)
        return BackendResult(data=row)

    def update(self, table: Tables, row_id: str, fields: Mapping[str, Any]) -> BackendResult[Row]:
        model = MODEL_REGISTRY[table]
        try:
            self._check_fields(model, fields)
        except _UnknownColumn as exc:
            return BackendResult(error=str(exc))
        if "id" in fields:
            return BackendResult(error="column 'id' cannot be updated")

        try:
            obj = self._find(table, row_id)
            if obj is None:
                return BackendResult(data=None)
            if not self._writable(table, row_id, fields):
                return self._forbidden("update", table)
            old = obj.to_dict()
            for name, value in fields.items():
                setattr(obj, name, value)
            self.session.flush()
            row = obj.to_dict()
            self.session.commit()
        except SQLAlchemyError as exc:
            return self._fail("update", table.value, exc)

        self._publish(table, "UPDATE", row, old)
        return BackendResult(data=row)

    def remove(self, table: Tables, row_id: str) -> BackendResult[None]:
        try:
            obj = self._find(table, row_id)
            if obj is None:
                return BackendResult(error=f"No {table.value} row with id {row_id}")
            if not self._writable(table, row_id):
                return self._forbidden("delete", table)
            self.session.delete(obj)
            # delete() has already cascaded to loaded children (todos, shares, presence)
            removed = [(_TABLE_BY_MODEL.get(type(o)), o.to_dict()) for o in self.session.deleted]
            self.session.commit()
        except SQLAlchemyError as exc:
            return self._fail("remove", table.value, exc)

        for removed_table, old in removed:
            if removed_table is not None:
                self._publish(removed_table, "DELETE", None, old)
        return BackendResult()

    def rpc(self, procedure: str, params: Mapping[str, Any]) -> BackendResult[Any]:
        fn = PROCEDURES.get(procedure)
        if fn is None:
            return BackendResult(error=f"Unknown procedure {procedure}")

        ctx = ProcedureContext(
            session=self.session,
            identity=self.auth.get_user(),
            bypass_policies=self.bypass_policies,
        )
        try:
            data = fn(ctx, dict(params or {}))
            self.session.commit()
        except ProcedureError as exc:
            self.session.rollback()
            log.info("Procedure %s rejected: %s", procedure, exc)
            return BackendResult(error=str(exc))
        except SQLAlchemyError as exc:
            return self._fail("rpc", procedure, exc)

        for table, event_type, new, old in ctx.changes:
            self._publish(table, event_type, new, old)
        return BackendResult(data=data)


class SqlBackend:
    """
    One adapter per caller: the session and realtime hub are shared, the
    identity decides which rows are visible.
    """

    def __init__(
        self,
        session: Session,
        realtime: RealtimeHub,
        identity: Optional[Identity] = None,
        bypass_policies: bool = False,
    ):
        self.session = session
        self.realtime = realtime
        self.auth = SqlAuth(identity)
        self.db = SqlDatabase(session, realtime, self.auth, bypass_policies=bypass_policies)

    def as_identity(self, identity: Optional[Identity]) -> "SqlBackend":
        return SqlBackend(self.session, self.realtime, identity, bypass_policies=self.db.bypass_policies)
