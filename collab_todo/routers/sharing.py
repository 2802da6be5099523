# File: collab_todo/routers/sharing.py | Version: 1.0 | Title: List sharing + invite acceptance
from __future__ import annotations

from typing import List as TList

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from collab_todo.core.permissions import ListPermission, require_list_permission, require_list_permission_dependency
from collab_todo.db.session import get_db
from collab_todo.dependencies import get_list_service
from collab_todo.models import ListShare, User
from collab_todo.schemas.lists import ListShareOut, ShareCreate, SharePermissionUpdate
from collab_todo.security import get_current_user
from collab_todo.services.lists import ListService

router = APIRouter(prefix="/lists", tags=["Sharing"])


def _share_in_list(db: Session, list_id: str, share_id: str) -> ListShare:
    share = db.get(ListShare, share_id)
    if share is None or share.list_id != list_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share not found")
    return share


@router.get(
    "/{list_id}/shares",
    response_model=TList[ListShareOut],
    dependencies=[Depends(require_list_permission_dependency(ListPermission.VIEWER))],
)
def get_list_shares(list_id: str, service: ListService = Depends(get_list_service)):
    return service.get_list_shares(list_id)


@router.post(
    "/{list_id}/shares",
    response_model=ListShareOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_list_permission_dependency(ListPermission.OWNER))],
)
def share_list(list_id: str, payload: ShareCreate, service: ListService = Depends(get_list_service)):
    return service.share_list(list_id, payload.email, payload.permission)


@router.patch(
    "/{list_id}/shares/{share_id}",
    response_model=ListShareOut,
    dependencies=[Depends(require_list_permission_dependency(ListPermission.OWNER))],
)
def update_share_permission(
    list_id: str,
    share_id: str,
    payload: SharePermissionUpdate,
    db: Session = Depends(get_db),
    service: ListService = Depends(get_list_service),
):
    _share_in_list(db, list_id, share_id)
    return service.update_share_permission(share_id, payload.permission)


@router.delete("/{list_id}/shares/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_share(
    list_id: str,
    share_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Owners remove anyone; an invitee may remove (decline) their own share."""
    share = _share_in_list(db, list_id, share_id)
    addressed_to_me = share.shared_with_user_id == current_user.id or (
        share.shared_with_email or ""
    ).lower() == current_user.email.lower()
    if not addressed_to_me:
        require_list_permission(db, user=current_user, list_id=list_id, minimum=ListPermission.OWNER)
    service.remove_share(share_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/invites/{share_id}/accept", response_model=ListShareOut)
def accept_invite(
    share_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    share = db.get(ListShare, share_id)
    if share is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invite not found")
    if (share.shared_with_email or "").lower() != current_user.email.lower() and share.shared_with_user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This invite is addressed to someone else.")
    return service.accept_invite(share_id)
