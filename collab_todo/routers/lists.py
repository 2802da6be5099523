# File: collab_todo/routers/lists.py | Version: 1.0 | Title: Lists CRUD
from __future__ import annotations

from typing import List as TList

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from collab_todo.core.errors import NotFoundError
from collab_todo.core.permissions import ListPermission, require_list_permission
from collab_todo.db.session import get_db
from collab_todo.dependencies import get_list_service
from collab_todo.models import User
from collab_todo.schemas.lists import ListCreate, ListOut, ListShareOut, ListUpdate
from collab_todo.security import get_current_user
from collab_todo.services.lists import ListService

router = APIRouter(prefix="/lists", tags=["Lists"])


@router.get("/", response_model=TList[ListOut])
def get_lists(service: ListService = Depends(get_list_service)):
    """Default list first, then by position, newest first on ties."""
    return service.get_lists()


@router.post("/", response_model=ListOut, status_code=status.HTTP_201_CREATED)
def create_list(payload: ListCreate, service: ListService = Depends(get_list_service)):
    return service.create_list(
        payload.title.strip(),
        payload.description,
        payload.color,
        payload.icon,
        location_name=payload.location_name,
        latitude=payload.latitude,
        longitude=payload.longitude,
    )


@router.get("/invites", response_model=TList[ListShareOut])
def get_pending_invites(service: ListService = Depends(get_list_service)):
    return service.get_pending_invites()


@router.get("/{list_id}", response_model=ListOut)
def get_list(
    list_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    require_list_permission(db, user=current_user, list_id=list_id, minimum=ListPermission.VIEWER)
    lst = service.get_list_by_id(list_id)
    if lst is None:
        raise NotFoundError("List not found")
    return lst


@router.patch("/{list_id}", response_model=ListOut)
def update_list(
    list_id: str,
    payload: ListUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    require_list_permission(
        db, user=current_user, list_id=list_id, minimum=ListPermission.OWNER,
        message="Only the list owner can edit this list.",
    )
    return service.update_list(list_id, payload.model_dump(exclude_unset=True))


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_list(
    list_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    require_list_permission(
        db, user=current_user, list_id=list_id, minimum=ListPermission.OWNER,
        message="Only the list owner can delete this list.",
    )
    service.delete_list(list_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
