# File: collab_todo/routers/presence.py | Version: 1.0 | Title: Who is viewing / editing a list
from __future__ import annotations

from typing import List as TList

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from collab_todo.backend.sql import identity_from_user
from collab_todo.core.permissions import ListPermission, require_list_permission_dependency
from collab_todo.db.session import get_db
from collab_todo.dependencies import get_list_service
from collab_todo.models import User
from collab_todo.schemas.lists import PresenceOut, PresenceSummaryOut, PresenceUpdate
from collab_todo.services.lists import ListService
from collab_todo.stores.presence import summarize_presence

router = APIRouter(
    prefix="/lists/{list_id}/presence",
    tags=["Presence"],
    dependencies=[Depends(require_list_permission_dependency(ListPermission.VIEWER))],
)


@router.get("", response_model=TList[PresenceOut])
def get_presence(list_id: str, include_stale: bool = False, service: ListService = Depends(get_list_service)):
    """Fresh rows only unless `include_stale`; nothing is pruned here."""
    if include_stale:
        return service.get_list_presence(list_id)
    return service.get_active_presence(list_id)


@router.put("", response_model=PresenceOut)
def update_presence(list_id: str, payload: PresenceUpdate, service: ListService = Depends(get_list_service)):
    return service.update_presence(list_id, payload.status, payload.editing_todo_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def leave_list(list_id: str, service: ListService = Depends(get_list_service)):
    service.leave_list(list_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/summary", response_model=PresenceSummaryOut)
def presence_summary(
    list_id: str,
    db: Session = Depends(get_db),
    service: ListService = Depends(get_list_service),
):
    rows = service.get_active_presence(list_id)
    user_ids = {row["user_id"] for row in rows}
    users = db.execute(select(User).where(User.id.in_(user_ids))).scalars().all() if user_ids else []
    return summarize_presence(rows, {u.id: identity_from_user(u) for u in users})
