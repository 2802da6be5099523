# File: collab_todo/models/entities.py | Version: 1.0 | Path: /collab_todo/models/entities.py
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, List as TList, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collab_todo.db.base_class import Base


def gen_uuid() -> str:
    return str(uuid4())


def _empty_list() -> list:
    return []


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    __tablename__ = "user"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    lists: Mapped[TList["List"]] = relationship(back_populates="owner", cascade="all, delete-orphan")


class List(Base):
    __tablename__ = "lists"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    color: Mapped[str] = mapped_column(String(20), default="#6366f1")
    icon: Mapped[str] = mapped_column(String(50), default="list")
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Wall-clock milliseconds at creation; collisions are possible and tolerated.
    position: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    location_name: Mapped[Optional[str]] = mapped_column(String(255))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    owner: Mapped["User"] = relationship(back_populates="lists")
    shares: Mapped[TList["ListShare"]] = relationship(back_populates="list", cascade="all, delete-orphan")
    presence: Mapped[TList["ListPresence"]] = relationship(back_populates="list", cascade="all, delete-orphan")
    todos: Mapped[TList["Todo"]] = relationship(back_populates="list", cascade="all, delete-orphan")


class ListShare(Base):
    __tablename__ = "list_shares"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    list_id: Mapped[str] = mapped_column(ForeignKey("lists.id", ondelete="CASCADE"), index=True, nullable=False)
    shared_with_user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("user.id"), index=True)
    shared_with_email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    permission: Mapped[str] = mapped_column(String(20), nullable=False, default="viewer")
    invited_by: Mapped[str] = mapped_column(ForeignKey("user.id"), nullable=False)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    list: Mapped["List"] = relationship(back_populates="shares")


class ListPresence(Base):
    __tablename__ = "list_presence"
    __table_args__ = (UniqueConstraint("list_id", "user_id", name="uq_list_presence_list_user"),)
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    list_id: Mapped[str] = mapped_column(ForeignKey("lists.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="viewing")
    editing_todo_id: Mapped[Optional[str]] = mapped_column(String)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    list: Mapped["List"] = relationship(back_populates="presence")


class Todo(Base):
    __tablename__ = "todos"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    list_id: Mapped[str] = mapped_column(ForeignKey("lists.id", ondelete="CASCADE"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="none", nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    location_name: Mapped[Optional[str]] = mapped_column(String(255))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    recurrence_rule: Mapped[Optional[str]] = mapped_column(String(100))
    recurrence_parent_id: Mapped[Optional[str]] = mapped_column(ForeignKey("todos.id", ondelete="SET NULL"), index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[TList[str]] = mapped_column(JSON, default=_empty_list, nullable=False)
    attachments: Mapped[TList[dict[str, Any]]] = mapped_column(JSON, default=_empty_list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    list: Mapped["List"] = relationship(back_populates="todos")
    shares: Mapped[TList["TodoShare"]] = relationship(back_populates="todo", cascade="all, delete-orphan")


class TodoShare(Base):
    __tablename__ = "todo_shares"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    todo_id: Mapped[str] = mapped_column(ForeignKey("todos.id", ondelete="CASCADE"), index=True, nullable=False)
    shared_with_email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    permission: Mapped[str] = mapped_column(String(20), nullable=False, default="view")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    todo: Mapped["Todo"] = relationship(back_populates="shares")


class Notification(Base):
    __tablename__ = "notifications"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, default="")
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    action_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class UserPreferences(Base):
    __tablename__ = "user_preferences"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)
    time_format: Mapped[str] = mapped_column(String(5), default="12h", nullable=False)
    auto_hide_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    theme_preference: Mapped[str] = mapped_column(String(10), default="system", nullable=False)
    default_list_id: Mapped[Optional[str]] = mapped_column(ForeignKey("lists.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


# Ordering indexes used by getLists() / getTodos()
Index("ix_lists_user_position", List.user_id, List.position)
Index("ix_todos_list_position", Todo.list_id, Todo.position)
Index("ix_notifications_user_created_at", Notification.user_id, Notification.created_at)
