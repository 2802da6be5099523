# File: collab_todo/routers/auth_extras.py | Version: 1.0 | Title: Auth Extras (/auth/me, /auth/refresh)
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from collab_todo.models import User
from collab_todo.schemas.auth import RefreshIn, TokenResponse
from collab_todo.schemas.user import UserResponse
from collab_todo.security import create_access_token, decode_refresh_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/refresh", response_model=TokenResponse)
def refresh(body: RefreshIn):
    payload = decode_refresh_token(body.refresh_token)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return TokenResponse(access_token=create_access_token({"sub": sub}))
