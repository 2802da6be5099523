# File: collab_todo/schemas/geolocation.py | Version: 1.0 | Title: Proximity query schemas
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from collab_todo.schemas.lists import NearbyListOut
from collab_todo.schemas.todos import NearbyTodoOut


class ProximityQuery(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_meters: Optional[float] = Field(default=None, gt=0)


class ProximityOut(BaseModel):
    lists: list[NearbyListOut]
    todos: list[NearbyTodoOut]
