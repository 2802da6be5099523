# File: collab_todo/dependencies.py | Version: 1.0 | Path: /collab_todo/dependencies.py
"""
Request-scoped wiring: one SqlBackend per request, bound to the caller and to
the process-wide realtime hub held on `app.state`.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from collab_todo.backend.realtime import RealtimeHub
from collab_todo.backend.sql import SqlBackend, identity_from_user
from collab_todo.db.session import get_db
from collab_todo.models import User
from collab_todo.security import get_current_user
from collab_todo.services.attachments import AttachmentStorage
from collab_todo.services.lists import ListService
from collab_todo.services.notifications import NotificationService
from collab_todo.services.preferences import PreferencesService
from collab_todo.services.todos import TodoService


def get_realtime(request: Request) -> RealtimeHub:
    return request.app.state.realtime


def get_attachment_storage(request: Request) -> AttachmentStorage:
    return request.app.state.attachment_storage


def get_backend(
    db: Session = Depends(get_db),
    realtime: RealtimeHub = Depends(get_realtime),
    current_user: User = Depends(get_current_user),
) -> SqlBackend:
    return SqlBackend(db, realtime, identity_from_user(current_user))


def get_list_service(backend: SqlBackend = Depends(get_backend)) -> ListService:
    return ListService(backend)


def get_todo_service(
    backend: SqlBackend = Depends(get_backend),
    storage: AttachmentStorage = Depends(get_attachment_storage),
) -> TodoService:
    return TodoService(backend, storage=storage)


def get_notification_service(backend: SqlBackend = Depends(get_backend)) -> NotificationService:
    return NotificationService(backend)


def get_preferences_service(backend: SqlBackend = Depends(get_backend)) -> PreferencesService:
    return PreferencesService(backend)
