# File: collab_todo/services/geolocation.py | Version: 1.1 | Title: Location provider + proximity checks
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from collab_todo.backend.types import BackendClient, Row
from collab_todo.core.clock import now_ms
from collab_todo.core.config import settings
from collab_todo.core.errors import AppError, NotFoundError, PermissionDeniedError
from collab_todo.services.base import BaseService

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


class LocationPermission(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


PositionCallback = Callable[[Coordinates], None]


class LocationProvider(Protocol):
    def permission(self) -> LocationPermission: ...

    def request_permission(self) -> bool: ...

    def current_position(self) -> Coordinates: ...

    def watch(self, callback: PositionCallback) -> int: ...

    def clear_watch(self, watch_id: int) -> None: ...


class FixedLocationProvider:
    """
    Location source fed with explicit coordinates (a request body, a test).
    `set_position()` notifies every active watch.
    """

    def __init__(
        self,
        position: Optional[Coordinates] = None,
        permission: LocationPermission = LocationPermission.PROMPT,
    ):
        self._position = position
        self._permission = permission
        self._watches: dict[int, PositionCallback] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def permission(self) -> LocationPermission:
        return self._permission

    def request_permission(self) -> bool:
        if self._permission is LocationPermission.PROMPT:
            self._permission = LocationPermission.GRANTED if self._position else LocationPermission.DENIED
        return self._permission is LocationPermission.GRANTED

    def deny(self) -> None:
        self._permission = LocationPermission.DENIED

    def current_position(self) -> Coordinates:
        if self._permission is not LocationPermission.GRANTED:
            raise PermissionDeniedError("Location permission not granted")
        if self._position is None:
            raise NotFoundError("Location unavailable")
        return self._position

    def set_position(self, position: Coordinates) -> None:
        self._position = position
        with self._lock:
            callbacks = list(self._watches.values())
        for callback in callbacks:
            callback(position)

    def watch(self, callback: PositionCallback) -> int:
        with self._lock:
            watch_id = next(self._ids)
            self._watches[watch_id] = callback
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        with self._lock:
            self._watches.pop(watch_id, None)

    @property
    def active_watches(self) -> int:
        return len(self._watches)


NearbyCallback = Callable[[Coordinates, list[Row], list[Row]], None]


class GeolocationService(BaseService):
    def __init__(
        self,
        backend: BackendClient,
        provider: LocationProvider,
        *,
        radius_meters: Optional[float] = None,
        clock: Callable[[], int] = now_ms,
    ):
        super().__init__(backend, clock=clock)
        self.provider = provider
        self.radius_meters = radius_meters if radius_meters is not None else settings.PROXIMITY_RADIUS_METERS
        self._watch_id: Optional[int] = None

    def check_permission(self) -> LocationPermission:
        return self.provider.permission()

    def request_permission(self) -> bool:
        return self.provider.request_permission()

    def get_current_position(self) -> Coordinates:
        return self.provider.current_position()

    def _nearby(self, procedure: str, latitude: float, longitude: float) -> list[Row]:
        params = {"p_latitude": latitude, "p_longitude": longitude, "p_radius_meters": self.radius_meters}
        return self._unwrap(self.backend.db.rpc(procedure, params)) or []

    def check_proximity_to_lists(self, latitude: float, longitude: float) -> list[Row]:
        return self._nearby("nearby_lists", latitude, longitude)

    def check_proximity_to_todos(self, latitude: float, longitude: float) -> list[Row]:
        return self._nearby("nearby_todos", latitude, longitude)

    def is_monitoring(self) -> bool:
        return self._watch_id is not None

    def start_monitoring(self, on_nearby: Optional[NearbyCallback] = None) -> None:
        """Watch the provider and report lists/todos near each new position."""
        if self.provider.permission() is not LocationPermission.GRANTED:
            raise PermissionDeniedError("Location permission not granted")
        if self._watch_id is not None:
            return

        def _on_position(position: Coordinates) -> None:
            try:
                lists = self.check_proximity_to_lists(position.latitude, position.longitude)
                todos = self.check_proximity_to_todos(position.latitude, position.longitude)
            except AppError as exc:
                # Runs inside the provider's watch callback; the next fix retries
                log.warning(
                    "Proximity check failed: %s",
                    exc.message,
                    extra={"latitude": position.latitude, "longitude": position.longitude},
                )
                return
            if (lists or todos) and on_nearby is not None:
                on_nearby(position, lists, todos)

        self._watch_id = self.provider.watch(_on_position)
        log.info("Location monitoring started")

    def stop_monitoring(self) -> None:
        if self._watch_id is None:
            return
        self.provider.clear_watch(self._watch_id)
        self._watch_id = None
        log.info("Location monitoring stopped")
