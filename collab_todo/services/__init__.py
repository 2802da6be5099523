# File: collab_todo/services/__init__.py | Version: 1.0 | Title: Service layer exports
from .attachments import AttachmentStorage, LocalAttachmentStorage
from .geolocation import Coordinates, FixedLocationProvider, GeolocationService, LocationPermission
from .lists import ListService
from .notifications import NotificationService
from .preferences import PreferencesService
from .todos import TodoService

__all__ = [
    "AttachmentStorage",
    "Coordinates",
    "FixedLocationProvider",
    "GeolocationService",
    "ListService",
    "LocalAttachmentStorage",
    "LocationPermission",
    "NotificationService",
    "PreferencesService",
    "TodoService",
]
