# File: collab_todo/routers/auth.py | Version: 1.0 | Title: Auth Router (JSON+form tolerant) + Default List + Access & Refresh Tokens
from __future__ import annotations

import logging
from json import JSONDecodeError
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from sqlalchemy.orm import Session

from collab_todo.backend.realtime import RealtimeHub
from collab_todo.backend.sql import SqlBackend, identity_from_user
from collab_todo.db.session import get_db
from collab_todo.dependencies import get_realtime
from collab_todo.models import User
from collab_todo.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
)
from collab_todo.services.lists import ListService

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ---------------------------
# Utilities
# ---------------------------


async def _read_json_or_form(request: Request) -> Dict[str, Any]:
    """Accept JSON or form-encoded bodies and normalize keys."""
    ctype = (request.headers.get("content-type") or "").lower()
    data: Dict[str, Any] = {}
    if "application/json" in ctype:
        try:
            body = await request.json()
        except JSONDecodeError:
            body = None
        if isinstance(body, dict):
            data = body
    else:
        form = await request.form()
        data = dict(form)

    # alias: username -> email (OAuth-style)
    if "username" in data and "email" not in data:
        data["email"] = data["username"]
    return data


def _ensure_default_list(db: Session, realtime: RealtimeHub, user: User) -> None:
    """Every account starts with one default list; registering twice does not add another."""
    service = ListService(SqlBackend(db, realtime, identity_from_user(user)))
    service.ensure_default_list()


def _issue_tokens_for_user(user: User) -> Dict[str, str]:
    sub = {"sub": str(user.id)}
    return {
        "access_token": create_access_token(sub),
        "refresh_token": create_refresh_token(sub),
        "token_type": "bearer",
    }


def _authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )
    return user


# ---------------------------
# Endpoints
# ---------------------------


@router.post("/register")
async def register(
    request: Request,
    db: Session = Depends(get_db),
    realtime: RealtimeHub = Depends(get_realtime),
):
    """
    Register a user. Idempotent:
      - If new: create user and their default list.
      - If exists: make sure the default list exists and return 200.
    Accepts JSON or form {email, password, [full_name]}.
    """
    payload = await _read_json_or_form(request)
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password")
    full_name: Optional[str] = payload.get("full_name")

    if not email or not password:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Email and password required",
        )

    user = db.query(User).filter(User.email == email).first()
    if not user:
        user = User(
            email=email,
            full_name=full_name,
            hashed_password=get_password_hash(password),
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        log.info("User registered", extra={"user_id": user.id})

    _ensure_default_list(db, realtime, user)
    return {"id": str(user.id), "email": user.email}


@router.post("/login")
async def login(request: Request, db: Session = Depends(get_db)):
    """
    Login with JSON or form {email/username, password}.
    Returns both access and refresh tokens for later /auth/refresh use.
    """
    payload = await _read_json_or_form(request)
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password")

    if not email or not password:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Email and password required",
        )

    return _issue_tokens_for_user(_authenticate(db, email, password))


@router.post("/token")
def login_oauth_form(
    db: Session = Depends(get_db),
    username: str = Form(...),
    password: str = Form(...),
):
    """OAuth2 form variant (Swagger's Authorize button). Returns access + refresh tokens."""
    email = (username or "").strip().lower()
    return _issue_tokens_for_user(_authenticate(db, email, password))
