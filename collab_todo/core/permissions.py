# File: collab_todo/core/permissions.py | Version: 1.1 | Title: List/Todo permission ladders + FastAPI guards
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Type, TypeVar

from fastapi import Depends, HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from collab_todo.db.session import get_db
from collab_todo.models import List, ListShare, Todo, TodoShare, User
from collab_todo.security import get_current_user


class ListPermission(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class TodoPermission(str, Enum):
    EDIT = "edit"
    VIEW = "view"


# Lowest → Highest
LIST_PERMISSION_ORDER = [ListPermission.VIEWER, ListPermission.EDITOR, ListPermission.OWNER]
TODO_PERMISSION_ORDER = [TodoPermission.VIEW, TodoPermission.EDIT]

_RANKS: dict[type, dict[Any, int]] = {
    ListPermission: {p: i for i, p in enumerate(LIST_PERMISSION_ORDER)},
    TodoPermission: {p: i for i, p in enumerate(TODO_PERMISSION_ORDER)},
}

P = TypeVar("P", ListPermission, TodoPermission)


def _normalize(value: Any, enum_cls: Type[P]) -> Optional[P]:
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        normalized = value.strip().lower()
    except AttributeError:
        return None
    for p in enum_cls:
        if p.value == normalized:
            return p
    return None


def normalize_list_permission(value: Any) -> Optional[ListPermission]:
    return _normalize(value, ListPermission)


def normalize_todo_permission(value: Any) -> Optional[TodoPermission]:
    return _normalize(value, TodoPermission)


def has_capability(held: Optional[P], required: P) -> bool:
    """
    The single capability comparison: True iff `held` ranks at or above `required`.
    owner ⊇ editor ⊇ viewer for lists, edit ⊇ view for todos.
    """
    if held is None:
        return False
    ranks = _RANKS[type(required)]
    if type(held) is not type(required):
        raise TypeError(f"Cannot compare {type(held).__name__} with {type(required).__name__}")
    return ranks[held] >= ranks[required]


def _highest(perms: list[P]) -> Optional[P]:
    if not perms:
        return None
    ranks = _RANKS[type(perms[0])]
    return max(perms, key=lambda p: ranks[p])


def list_permission_for_todo(perm: Optional[ListPermission]) -> Optional[TodoPermission]:
    # Editors and owners of a list edit its todos; viewers only read them
    if perm is None:
        return None
    return TodoPermission.EDIT if has_capability(perm, ListPermission.EDITOR) else TodoPermission.VIEW


# ----- Resolution against stored rows -----


def get_list_permission(
    db: Session, *, user_id: str, email: Optional[str], list_id: Any
) -> Optional[ListPermission]:
    """
    Return the caller's permission on a list, or None without access.
    The list's owner is always OWNER; otherwise the best accepted share wins.
    """
    lst = db.get(List, str(list_id))
    if lst is None:
        return None
    if lst.user_id == user_id:
        return ListPermission.OWNER

    addressed = [ListShare.shared_with_user_id == user_id]
    if email:
        addressed.append(func.lower(ListShare.shared_with_email) == email.lower())
    shares = (
        db.query(ListShare)
        .filter(
            ListShare.list_id == lst.id,
            ListShare.accepted_at.is_not(None),
            or_(*addressed),
        )
        .all()
    )
    return _highest([p for p in (normalize_list_permission(s.permission) for s in shares) if p])


def get_todo_permission(
    db: Session, *, user_id: str, email: Optional[str], todo_id: Any
) -> Optional[TodoPermission]:
    todo = db.get(Todo, str(todo_id))
    if todo is None:
        return None
    if todo.user_id == user_id:
        return TodoPermission.EDIT

    candidates: list[TodoPermission] = []
    via_list = list_permission_for_todo(
        get_list_permission(db, user_id=user_id, email=email, list_id=todo.list_id)
    )
    if via_list:
        candidates.append(via_list)
    if email:
        shares = (
            db.query(TodoShare)
            .filter(
                TodoShare.todo_id == todo.id,
                func.lower(TodoShare.shared_with_email) == email.lower(),
            )
            .all()
        )
        candidates.extend(p for p in (normalize_todo_permission(s.permission) for s in shares) if p)
    if todo.is_public:
        candidates.append(TodoPermission.VIEW)
    return _highest(candidates)


def require_list_permission(
    db: Session,
    *,
    user: User,
    list_id: Any,
    minimum: ListPermission,
    message: Optional[str] = None,
) -> ListPermission:
    """
    Enforce that the user holds at least `minimum` on the list.
    404 when the caller has no access at all (missing and hidden lists look
    the same), 403 when they hold a permission below `minimum`.
    """
    resolved = get_list_permission(db, user_id=str(user.id), email=user.email, list_id=list_id)
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
    if not has_capability(resolved, minimum):
        detail = message or f"Requires '{minimum.value}' permission on list {list_id}."
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    return resolved  # type: ignore[return-value]


def require_todo_permission(
    db: Session,
    *,
    user: User,
    todo_id: Any,
    minimum: TodoPermission,
    message: Optional[str] = None,
) -> TodoPermission:
    resolved = get_todo_permission(db, user_id=str(user.id), email=user.email, todo_id=todo_id)
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    if not has_capability(resolved, minimum):
        detail = message or f"Requires '{minimum.value}' permission on todo {todo_id}."
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    return resolved  # type: ignore[return-value]


# ----- FastAPI dependency factory -----
def require_list_permission_dependency(minimum: ListPermission) -> Callable:
    """
    Example:
      @router.get("/lists/{list_id}/shares",
                  dependencies=[Depends(require_list_permission_dependency(ListPermission.VIEWER))])
    """

    def _dep(
        list_id: str,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ) -> None:
        require_list_permission(db, user=current_user, list_id=list_id, minimum=minimum)

    return _dep
