# File: collab_todo/routers/todos.py | Version: 1.0 | Title: Todos CRUD, toggles, sharing, bulk, attachments
from __future__ import annotations

from typing import List as TList

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from collab_todo.core.errors import NotFoundError
from collab_todo.core.permissions import (
    ListPermission,
    TodoPermission,
    require_list_permission,
    require_todo_permission,
)
from collab_todo.db.session import get_db
from collab_todo.dependencies import get_todo_service
from collab_todo.models import TodoShare, User
from collab_todo.schemas.todos import (
    AttachmentOut,
    BulkIds,
    BulkPriority,
    BulkResult,
    BulkTag,
    RecurringComplete,
    RecurringCompleteOut,
    TodoCreate,
    TodoOut,
    TodoShareCreate,
    TodoShareOut,
    TodoSharePermissionUpdate,
    TodoUpdate,
)
from collab_todo.security import get_current_user
from collab_todo.services.todos import TodoService

router = APIRouter(prefix="/todos", tags=["Todos"])


def _require_all(db: Session, user: User, todo_ids: list[str], minimum: TodoPermission) -> None:
    for todo_id in todo_ids:
        require_todo_permission(db, user=user, todo_id=todo_id, minimum=minimum)


def _share_on_todo(db: Session, todo_id: str, share_id: str) -> TodoShare:
    share = db.get(TodoShare, share_id)
    if share is None or share.todo_id != todo_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share not found")
    return share


# ---------------------------
# CRUD
# ---------------------------


@router.get("/", response_model=TList[TodoOut])
def get_todos(
    list_id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_list_permission(db, user=current_user, list_id=list_id, minimum=ListPermission.VIEWER)
    return service.get_todos(list_id)


@router.post("/", response_model=TodoOut, status_code=status.HTTP_201_CREATED)
def create_todo(
    payload: TodoCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_list_permission(
        db, user=current_user, list_id=payload.list_id, minimum=ListPermission.EDITOR,
        message="Viewers cannot add todos to this list.",
    )
    extra = payload.model_dump(exclude={"list_id", "title", "description", "completed"}, exclude_none=True)
    return service.create_todo(payload.list_id, payload.title.strip(), payload.description, payload.completed, **extra)


@router.get("/{todo_id}", response_model=TodoOut)
def get_todo(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.VIEW)
    todo = service.get_todo_by_id(todo_id)
    if todo is None:
        raise NotFoundError("Todo not found")
    return todo


@router.patch("/{todo_id}", response_model=TodoOut)
def update_todo(
    todo_id: str,
    payload: TodoUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("list_id"):
        # Moving a todo needs write access on the destination too
        require_list_permission(db, user=current_user, list_id=fields["list_id"], minimum=ListPermission.EDITOR)
    return service.update_todo(todo_id, fields)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    service.delete_todo(todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{todo_id}/toggle", response_model=TodoOut)
def toggle_todo(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    return service.toggle_todo(todo_id)


@router.post("/{todo_id}/toggle-public", response_model=TodoOut)
def toggle_public(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    return service.toggle_public(todo_id)


# ---------------------------
# Sharing
# ---------------------------


@router.get("/{todo_id}/shares", response_model=TList[TodoShareOut])
def get_shares(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.VIEW)
    return service.get_shares(todo_id)


@router.post("/{todo_id}/shares", response_model=TodoShareOut, status_code=status.HTTP_201_CREATED)
def share_todo(
    todo_id: str,
    payload: TodoShareCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    return service.share_todo(todo_id, payload.email, payload.permission)


@router.patch("/{todo_id}/shares/{share_id}", response_model=TodoShareOut)
def update_share_permission(
    todo_id: str,
    share_id: str,
    payload: TodoSharePermissionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    _share_on_todo(db, todo_id, share_id)
    return service.update_share_permission(share_id, payload.permission)


@router.delete("/{todo_id}/shares/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_share(
    todo_id: str,
    share_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    _share_on_todo(db, todo_id, share_id)
    service.remove_share(share_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------
# Bulk (every id is checked before anything is written)
# ---------------------------


@router.post("/bulk/complete", response_model=BulkResult)
def bulk_complete(
    payload: BulkIds,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    _require_all(db, current_user, payload.todo_ids, TodoPermission.EDIT)
    return BulkResult(count=len(service.bulk_complete(payload.todo_ids)))


@router.post("/bulk/delete", response_model=BulkResult)
def bulk_delete(
    payload: BulkIds,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    _require_all(db, current_user, payload.todo_ids, TodoPermission.EDIT)
    return BulkResult(count=service.bulk_delete(payload.todo_ids))


@router.post("/bulk/priority", response_model=BulkResult)
def bulk_set_priority(
    payload: BulkPriority,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    _require_all(db, current_user, payload.todo_ids, TodoPermission.EDIT)
    return BulkResult(count=len(service.bulk_set_priority(payload.todo_ids, payload.priority)))


@router.post("/bulk/tag", response_model=BulkResult)
def bulk_add_tag(
    payload: BulkTag,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    _require_all(db, current_user, payload.todo_ids, TodoPermission.EDIT)
    return BulkResult(count=len(service.bulk_add_tag(payload.todo_ids, payload.tag)))


# ---------------------------
# Attachments + recurrence
# ---------------------------


@router.post("/{todo_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    todo_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    data = await file.read()
    return service.upload_attachment(todo_id, file.filename or "file", data, file.content_type)


@router.delete("/{todo_id}/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attachment(
    todo_id: str,
    attachment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    service.delete_attachment(todo_id, attachment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{todo_id}/complete-instance", response_model=RecurringCompleteOut)
def complete_recurring_instance(
    todo_id: str,
    payload: RecurringComplete,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    require_todo_permission(db, user=current_user, todo_id=todo_id, minimum=TodoPermission.EDIT)
    instance, parent = service.complete_recurring_instance(todo_id, payload.on_date)
    return RecurringCompleteOut(instance=instance, parent=parent)
