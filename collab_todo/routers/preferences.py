# File: collab_todo/routers/preferences.py | Version: 1.0 | Title: User preferences
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from collab_todo.core.permissions import ListPermission, require_list_permission
from collab_todo.db.session import get_db
from collab_todo.dependencies import get_preferences_service
from collab_todo.models import User
from collab_todo.schemas.preferences import PreferencesOut, PreferencesUpdate
from collab_todo.security import get_current_user
from collab_todo.services.preferences import PreferencesService

router = APIRouter(prefix="/preferences", tags=["Preferences"])


@router.get("/", response_model=PreferencesOut)
def get_preferences(service: PreferencesService = Depends(get_preferences_service)):
    return service.get_preferences()


@router.patch("/", response_model=PreferencesOut)
def update_preferences(
    payload: PreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service),
):
    patch = payload.model_dump(exclude_unset=True)
    if patch.get("default_list_id"):
        require_list_permission(db, user=current_user, list_id=patch["default_list_id"], minimum=ListPermission.VIEWER)
    return service.update_preferences(patch)
