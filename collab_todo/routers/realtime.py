# File: collab_todo/routers/realtime.py | Version: 1.0 | Title: WebSocket change feed over the realtime hub
"""
`/realtime/{channel}?token=<access token>` forwards every change published on
`channel` to the socket as JSON:

    {"table": ..., "event_type": ..., "new": {...}, "old": {...}, "commit_timestamp": ...}

Channel names follow the hub's `<table>` / `<table>:<scope>` convention.
Scoped channels are checked when the socket connects and again before each
event; access that disappears closes the socket. `lists` is the only unscoped
channel and its events are filtered row by row.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from collab_todo.backend.realtime import ANY_EVENT, ChangeEvent, RealtimeHub
from collab_todo.backend.sql import SqlBackend, identity_from_user
from collab_todo.backend.tables import SCOPE_COLUMNS, Tables
from collab_todo.db.session import get_db
from collab_todo.security import user_for_access_token

log = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

# Row a scope id points at; watching needs read access to it
_SCOPE_PARENTS = {"list_id": Tables.LISTS, "todo_id": Tables.TODOS}


class UnknownChannel(ValueError):
    pass


class ChannelAccess:
    """Which events on one channel the connected user may receive."""

    def __init__(self, backend: SqlBackend, table: Tables, scope: Optional[str] = None):
        self.backend = backend
        self.table = table
        self.scope = scope
        self._known_lists: set[str] = set()

    @classmethod
    def parse(cls, backend: SqlBackend, name: str) -> "ChannelAccess":
        table_name, _, scope = name.partition(":")
        try:
            table = Tables(table_name)
        except ValueError:
            raise UnknownChannel(f"Unknown channel {name!r}")
        if scope and table not in SCOPE_COLUMNS:
            raise UnknownChannel(f"Channel {table.value} has no scopes")
        if not scope and table is not Tables.LISTS:
            raise UnknownChannel(f"Channel {table.value} needs a scope")
        return cls(backend, table, scope or None)

    def _visible(self, table: Tables, row_id: Optional[str]) -> bool:
        if not row_id:
            return False
        result = self.backend.db.query_by_id(table, row_id)
        if result.error:
            log.warning("Visibility check on %s failed: %s", table.value, result.error, extra={"table": table.value})
            return False
        return result.data is not None

    def allowed(self) -> bool:
        """Whether the user may (still) watch this channel."""
        if self.scope is None:
            return True
        column = SCOPE_COLUMNS[self.table]
        if column == "user_id":
            user = self.backend.auth.get_user()
            return user is not None and self.scope == user.id
        return self._visible(_SCOPE_PARENTS[column], self.scope)

    def seed(self) -> None:
        if self.scope is None:
            rows = self.backend.db.query(Tables.LISTS).data or []
            self._known_lists = {row["id"] for row in rows}

    def admits(self, event: ChangeEvent) -> bool:
        if self.scope is not None:
            return True
        list_id = (event.new or event.old or {}).get("id")
        if event.new is not None and self._visible(Tables.LISTS, list_id):
            self._known_lists.add(list_id)
            return True
        # Deleted, or no longer visible: the last event the user hears about it
        if list_id in self._known_lists:
            self._known_lists.discard(list_id)
            return True
        return False


def event_payload(event: ChangeEvent) -> dict:
    return jsonable_encoder(asdict(event))


async def _until_disconnect(websocket: WebSocket) -> None:
    # Inbound frames are ignored
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


async def _forward(websocket: WebSocket, access: ChannelAccess, queue: "asyncio.Queue[ChangeEvent]") -> None:
    while True:
        event = await queue.get()
        if not await run_in_threadpool(access.allowed):
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Channel no longer available")
            return
        if await run_in_threadpool(access.admits, event):
            await websocket.send_json(event_payload(event))


@router.websocket("/realtime/{channel}")
async def realtime_feed(
    websocket: WebSocket,
    channel: str,
    token: str = Query(default=""),
    db: Session = Depends(get_db),
):
    user = user_for_access_token(db, token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Could not validate credentials")
        return

    hub: RealtimeHub = websocket.app.state.realtime
    backend = SqlBackend(db, hub, identity_from_user(user))
    try:
        access = ChannelAccess.parse(backend, channel)
    except UnknownChannel as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return
    if not access.allowed():
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Channel not found")
        return
    access.seed()

    # Hub delivery runs on the publishing thread; hand events to this loop
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
    joined = hub.channel(channel).on(
        ANY_EVENT, lambda event: loop.call_soon_threadsafe(queue.put_nowait, event)
    ).subscribe()

    await websocket.accept()
    log.info("Realtime feed opened on %s", channel, extra={"channel": channel, "user_id": user.id})
    receiving = asyncio.create_task(_until_disconnect(websocket))
    forwarding = asyncio.create_task(_forward(websocket, access, queue))
    try:
        done, _ = await asyncio.wait({receiving, forwarding}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            task.result()
    finally:
        receiving.cancel()
        forwarding.cancel()
        hub.remove_channel(joined)
        log.info("Realtime feed closed on %s", channel, extra={"channel": channel, "user_id": user.id})
