# File: tests/test_geolocation.py | Version: 1.1 | Title: Location provider, proximity RPCs and monitoring
import logging

import pytest

from collab_todo.backend import BackendResult
from collab_todo.backend.procedures import haversine_meters
from collab_todo.core.errors import NotFoundError, PermissionDeniedError
from collab_todo.services import (
    Coordinates,
    FixedLocationProvider,
    GeolocationService,
    ListService,
    LocationPermission,
    TodoService,
)
from collab_todo.stores import GeolocationStore, Toaster

OFFICE = Coordinates(51.5074, -0.1278)
NEAR_OFFICE = Coordinates(51.5080, -0.1278)  # ~67 m north
FAR_AWAY = Coordinates(48.8566, 2.3522)


@pytest.fixture()
def places(make_backend, users):
    backend = make_backend(users.alice)
    lists = ListService(backend)
    office = lists.create_list("Office", latitude=OFFICE.latitude, longitude=OFFICE.longitude)
    lists.create_list("Paris", latitude=FAR_AWAY.latitude, longitude=FAR_AWAY.longitude)
    lists.create_list("Nowhere")
    todos = TodoService(backend)
    printer = todos.create_todo(office["id"], "Fix printer", latitude=OFFICE.latitude, longitude=OFFICE.longitude)
    done = todos.create_todo(office["id"], "Old task", latitude=OFFICE.latitude, longitude=OFFICE.longitude)
    todos.toggle_todo(done["id"])
    return {"backend": backend, "office": office, "printer": printer}


def test_haversine_is_roughly_right():
    assert haversine_meters(OFFICE.latitude, OFFICE.longitude, OFFICE.latitude, OFFICE.longitude) == 0
    assert 60 < haversine_meters(OFFICE.latitude, OFFICE.longitude, NEAR_OFFICE.latitude, NEAR_OFFICE.longitude) < 75
    assert 340_000 < haversine_meters(OFFICE.latitude, OFFICE.longitude, FAR_AWAY.latitude, FAR_AWAY.longitude) < 345_000


def test_provider_permission_flow():
    provider = FixedLocationProvider(OFFICE)
    assert provider.permission() is LocationPermission.PROMPT
    with pytest.raises(PermissionDeniedError):
        provider.current_position()
    assert provider.request_permission() is True
    assert provider.current_position() == OFFICE

    provider.deny()
    assert provider.request_permission() is False


def test_provider_without_position():
    provider = FixedLocationProvider(permission=LocationPermission.GRANTED)
    with pytest.raises(NotFoundError):
        provider.current_position()
    assert FixedLocationProvider().request_permission() is False


def test_proximity_finds_nearby_lists_and_open_todos(places):
    service = GeolocationService(places["backend"], FixedLocationProvider(NEAR_OFFICE), radius_meters=200)
    lists = service.check_proximity_to_lists(NEAR_OFFICE.latitude, NEAR_OFFICE.longitude)
    todos = service.check_proximity_to_todos(NEAR_OFFICE.latitude, NEAR_OFFICE.longitude)

    assert [l["title"] for l in lists] == ["Office"]
    assert 60 < lists[0]["distance_meters"] < 75
    assert [t["id"] for t in todos] == [places["printer"]["id"]]


def test_proximity_respects_visibility(places, make_backend, users):
    service = GeolocationService(make_backend(users.dave), FixedLocationProvider(OFFICE), radius_meters=200)
    assert service.check_proximity_to_lists(OFFICE.latitude, OFFICE.longitude) == []


def test_monitoring_reports_only_when_something_is_near(places):
    provider = FixedLocationProvider(FAR_AWAY, LocationPermission.GRANTED)
    service = GeolocationService(places["backend"], provider, radius_meters=200)
    hits = []
    service.start_monitoring(lambda pos, lists, todos: hits.append((pos, len(lists), len(todos))))
    assert service.is_monitoring() is True

    provider.set_position(Coordinates(0, 0))
    assert hits == []
    provider.set_position(NEAR_OFFICE)
    assert hits == [(NEAR_OFFICE, 1, 1)]

    service.stop_monitoring()
    assert provider.active_watches == 0
    provider.set_position(OFFICE)
    assert len(hits) == 1


def test_failed_proximity_check_does_not_break_monitoring(places, monkeypatch, caplog):
    backend = places["backend"]
    provider = FixedLocationProvider(FAR_AWAY, LocationPermission.GRANTED)
    service = GeolocationService(backend, provider, radius_meters=200)
    hits = []
    service.start_monitoring(lambda pos, lists, todos: hits.append(pos))

    working_rpc = backend.db.rpc
    monkeypatch.setattr(backend.db, "rpc", lambda procedure, params: BackendResult(error="connection reset"))
    with caplog.at_level(logging.WARNING, logger="collab_todo.services.geolocation"):
        provider.set_position(NEAR_OFFICE)
    assert hits == []
    assert "Proximity check failed: connection reset" in caplog.text
    assert service.is_monitoring() is True

    monkeypatch.setattr(backend.db, "rpc", working_rpc)
    provider.set_position(OFFICE)
    assert hits == [OFFICE]


def test_monitoring_requires_permission(places):
    service = GeolocationService(places["backend"], FixedLocationProvider(OFFICE))
    with pytest.raises(PermissionDeniedError):
        service.start_monitoring()


def test_store_requests_permission_and_monitors(places):
    toaster = Toaster()
    provider = FixedLocationProvider(NEAR_OFFICE)
    service = GeolocationService(places["backend"], provider, radius_meters=200)
    store = GeolocationStore(service, toaster, enable_monitoring=True).mount()
    assert store.permission is LocationPermission.PROMPT
    assert store.is_monitoring is False

    assert store.request_permission() is True
    assert store.is_monitoring is True
    lists, todos = store.check_proximity()
    assert [l["title"] for l in lists] == ["Office"]
    assert store.current_position == NEAR_OFFICE

    store.unmount()
    assert service.is_monitoring() is False
    assert toaster.last.message == "Location monitoring stopped"


def test_store_denied_permission(places):
    toaster = Toaster()
    provider = FixedLocationProvider(None)
    store = GeolocationStore(GeolocationService(places["backend"], provider), toaster).mount()

    assert store.request_permission() is False
    assert store.permission is LocationPermission.DENIED
    assert toaster.last.message == "Location access denied"
    assert store.start_monitoring() is False
    assert store.check_proximity() == ([], [])
    assert store.error == "Location permission not granted"
    assert store.get_current_position() is None
