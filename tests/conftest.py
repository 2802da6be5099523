# ruff: noqa: E402
# File: /tests/conftest.py
import os
import pathlib
import sys
from itertools import count
from types import SimpleNamespace

# Make repo root importable as "collab_todo"
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# The app module builds its engine at import time; keep it off the dev database
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import collab_todo.models  # noqa: F401
from collab_todo.backend import RealtimeHub, SqlBackend, identity_from_user
from collab_todo.db.base_class import Base
from collab_todo.models import User
from collab_todo.services.attachments import LocalAttachmentStorage


@pytest.fixture()
def engine(tmp_path):
    # File-backed so separate sessions behave like separate clients
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def realtime():
    return RealtimeHub()


@pytest.fixture()
def clock():
    """Deterministic position keys: 1000, 1001, 1002, ..."""
    ticks = count(1000)
    return lambda: next(ticks)


def _user(db, email, full_name):
    user = User(email=email, full_name=full_name, hashed_password="not-a-real-hash", is_active=True)
    db.add(user)
    return user


@pytest.fixture()
def users(db_session):
    people = SimpleNamespace(
        alice=_user(db_session, "alice@example.com", "Alice Owner"),
        bob=_user(db_session, "bob@example.com", "Bob Editor"),
        carol=_user(db_session, "carol@example.com", "Carol Viewer"),
        dave=_user(db_session, "dave@example.com", None),
    )
    db_session.commit()
    for user in vars(people).values():
        db_session.refresh(user)
    return people


@pytest.fixture()
def make_backend(session_factory, realtime):
    """One backend per simulated client, each on its own session, all on the same hub."""
    sessions = []

    def _make(user=None, *, bypass_policies=False):
        session = session_factory()
        sessions.append(session)
        return SqlBackend(session, realtime, identity_from_user(user), bypass_policies=bypass_policies)

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture()
def storage(tmp_path):
    return LocalAttachmentStorage(tmp_path / "attachments", "/attachments", max_bytes=1024)


@pytest.fixture()
def client(session_factory, realtime, storage):
    from collab_todo.db.session import get_db  # late import to avoid circulars
    from collab_todo.main import app

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.state.realtime = realtime
    app.state.attachment_storage = storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client):
    """Register (idempotent) + login; returns bearer headers for the account."""

    def _login(email, password="secret123", full_name=None):
        client.post("/auth/register", json={"email": email, "password": password, "full_name": full_name})
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login
