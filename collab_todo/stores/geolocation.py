# File: collab_todo/stores/geolocation.py | Version: 1.0 | Title: Location permission, position and nearby items
from __future__ import annotations

from typing import Optional

from collab_todo.backend.types import Row
from collab_todo.core.errors import AppError
from collab_todo.services.geolocation import Coordinates, GeolocationService, LocationPermission, NearbyCallback
from collab_todo.stores.base import Store
from collab_todo.stores.toasts import Toaster


class GeolocationStore(Store[LocationPermission]):
    """
    `data` holds the permission state. With `enable_monitoring`, monitoring
    starts on mount once permission is granted and always stops on unmount.
    """

    load_error_message = "Failed to check permission"
    toast_load_errors = False

    def __init__(
        self,
        service: GeolocationService,
        toaster: Optional[Toaster] = None,
        *,
        enable_monitoring: bool = False,
        on_nearby: Optional[NearbyCallback] = None,
    ):
        self.service = service
        self.enable_monitoring = enable_monitoring
        self.on_nearby = on_nearby
        self.current_position: Optional[Coordinates] = None
        self.nearby_lists: list[Row] = []
        self.nearby_todos: list[Row] = []
        super().__init__(toaster)

    def _empty(self) -> LocationPermission:
        return LocationPermission.PROMPT

    def _fetch(self) -> LocationPermission:
        return self.service.check_permission()

    def _on_mount(self) -> None:
        if self.enable_monitoring and self.permission is LocationPermission.GRANTED:
            self.start_monitoring()

    def _on_unmount(self) -> None:
        if self.service.is_monitoring():
            self.stop_monitoring()

    @property
    def permission(self) -> LocationPermission:
        return self.data

    @property
    def is_monitoring(self) -> bool:
        return self.service.is_monitoring()

    def request_permission(self) -> bool:
        granted = self._mutate(self.service.request_permission, failure="Failed to request permission", fallback=False)
        self._set_data(LocationPermission.GRANTED if granted else LocationPermission.DENIED)
        if granted:
            self.toaster.success("Location access granted")
            if self.enable_monitoring and self.mounted:
                self.start_monitoring()
        else:
            self.toaster.error("Location access denied")
        return granted

    def get_current_position(self) -> Optional[Coordinates]:
        position = self._mutate(self.service.get_current_position, failure="Failed to get location")
        if position is not None:
            self.current_position = position
            self._notify()
        return position

    def check_proximity(self) -> tuple[list[Row], list[Row]]:
        """Silent on failure: sets `error` and reports nothing nearby."""
        try:
            position = self.service.get_current_position()
            lists = self.service.check_proximity_to_lists(position.latitude, position.longitude)
            todos = self.service.check_proximity_to_todos(position.latitude, position.longitude)
        except AppError as exc:
            self.error = exc.message
            self._notify()
            return [], []
        self.current_position = position
        self.nearby_lists = lists
        self.nearby_todos = todos
        self._notify()
        return lists, todos

    def start_monitoring(self) -> bool:
        if self.permission is not LocationPermission.GRANTED:
            self.toaster.error("Location permission not granted")
            return False
        started = self._mutate(
            lambda: self.service.start_monitoring(self.on_nearby) or True,
            failure="Failed to start monitoring",
            success="Location monitoring started",
            fallback=False,
        )
        return started

    def stop_monitoring(self) -> None:
        self.service.stop_monitoring()
        self.toaster.info("Location monitoring stopped")
