# File: collab_todo/routers/notifications.py | Version: 1.0 | Title: Notification feed
from __future__ import annotations

from typing import List as TList, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from collab_todo.dependencies import get_notification_service
from collab_todo.schemas.notifications import MarkedRead, NotificationCreate, NotificationOut, UnreadCount
from collab_todo.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=TList[NotificationOut])
def get_notifications(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    service: NotificationService = Depends(get_notification_service),
):
    return service.get_notifications(limit)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(service: NotificationService = Depends(get_notification_service)):
    return UnreadCount(unread=service.get_unread_count())


@router.post("/", response_model=NotificationOut, status_code=status.HTTP_201_CREATED)
def create_notification(payload: NotificationCreate, service: NotificationService = Depends(get_notification_service)):
    return service.create_notification(payload.type, payload.title, payload.body, payload.action_url)


@router.post("/read-all", response_model=MarkedRead)
def mark_all_as_read(service: NotificationService = Depends(get_notification_service)):
    return MarkedRead(updated=service.mark_all_as_read())


@router.post("/{notification_id}/read", response_model=NotificationOut)
def mark_as_read(notification_id: str, service: NotificationService = Depends(get_notification_service)):
    return service.mark_as_read(notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: str, service: NotificationService = Depends(get_notification_service)):
    service.delete_notification(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
