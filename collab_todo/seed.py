# File: collab_todo/seed.py | Version: 1.0 | Title: Demo bootstrap (users, default lists, sample todos)
"""Seed demo data. Safe to run repeatedly.

Usage:
  collab-todo-seed --create-tables
  collab-todo-seed --password secret123
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from collab_todo.backend.realtime import RealtimeHub
from collab_todo.backend.sql import SqlBackend, identity_from_user
from collab_todo.core.logging import configure_logging
from collab_todo.core.permissions import ListPermission
from collab_todo.db.base_class import Base
from collab_todo.db.session import SessionLocal, engine
from collab_todo.models import User
from collab_todo.security import get_password_hash
from collab_todo.services.lists import ListService
from collab_todo.services.todos import TodoService

log = logging.getLogger("collab_todo.seed")

DEMO_USERS = (
    ("alice@example.com", "Alice Owner"),
    ("bob@example.com", "Bob Editor"),
)

SECOND_LIST = {"title": "Groceries", "description": "Shared shopping list", "color": "#10b981", "icon": "cart"}

SAMPLE_TODOS = (
    {"title": "Milk", "priority": "low", "tags": ["dairy"]},
    {"title": "Bread", "priority": "medium"},
    {"title": "Coffee beans", "priority": "high", "recurrence_rule": "weekly"},
)


def _ensure_user(db: Session, email: str, full_name: str, password: str) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is not None:
        return user
    user = User(email=email, full_name=full_name, hashed_password=get_password_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("Created demo user %s", email)
    return user


def seed(db: Session, realtime: RealtimeHub, password: str = "password123") -> dict[str, int]:
    """Returns counts of what was created on this run."""
    created = {"users": 0, "lists": 0, "todos": 0, "shares": 0}
    users = []
    for email, full_name in DEMO_USERS:
        existed = db.execute(select(User.id).where(User.email == email)).first() is not None
        users.append(_ensure_user(db, email, full_name, password))
        created["users"] += 0 if existed else 1

    owner, collaborator = users
    for user in users:
        ListService(SqlBackend(db, realtime, identity_from_user(user))).ensure_default_list()

    owner_backend = SqlBackend(db, realtime, identity_from_user(owner))
    lists = ListService(owner_backend)
    second = next((lst for lst in lists.get_lists() if lst["title"] == SECOND_LIST["title"]), None)
    if second is None:
        second = lists.create_list(**SECOND_LIST)
        created["lists"] += 1

    todos = TodoService(owner_backend)
    if not todos.get_todos(second["id"]):
        for sample in SAMPLE_TODOS:
            todos.create_todo(second["id"], **sample)
            created["todos"] += 1

    if not any(s["shared_with_email"] == collaborator.email for s in lists.get_list_shares(second["id"])):
        share = lists.share_list(second["id"], collaborator.email, ListPermission.EDITOR)
        ListService(owner_backend.as_identity(identity_from_user(collaborator))).accept_invite(share["id"])
        created["shares"] += 1

    log.info("Seed complete: %s", created)
    return created


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Seed demo users, lists and todos.")
    ap.add_argument("--password", default="password123", help="password for newly created demo users")
    ap.add_argument("--create-tables", action="store_true", help="create missing tables before seeding")
    args = ap.parse_args(argv)

    configure_logging()
    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db, RealtimeHub(), password=args.password)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
