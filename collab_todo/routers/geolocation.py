# File: collab_todo/routers/geolocation.py | Version: 1.0 | Title: Proximity lookup for lists and todos
from __future__ import annotations

from fastapi import APIRouter, Depends

from collab_todo.backend.sql import SqlBackend
from collab_todo.dependencies import get_backend
from collab_todo.schemas.geolocation import ProximityOut, ProximityQuery
from collab_todo.services.geolocation import Coordinates, FixedLocationProvider, GeolocationService, LocationPermission

router = APIRouter(prefix="/geolocation", tags=["Geolocation"])


@router.post("/nearby", response_model=ProximityOut)
def nearby(payload: ProximityQuery, backend: SqlBackend = Depends(get_backend)):
    """The client reports its position; we answer with what is within the radius."""
    provider = FixedLocationProvider(
        Coordinates(payload.latitude, payload.longitude),
        permission=LocationPermission.GRANTED,
    )
    service = GeolocationService(backend, provider, radius_meters=payload.radius_meters)
    position = service.get_current_position()
    return ProximityOut(
        lists=service.check_proximity_to_lists(position.latitude, position.longitude),
        todos=service.check_proximity_to_todos(position.latitude, position.longitude),
    )
