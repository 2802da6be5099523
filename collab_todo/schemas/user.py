# File: collab_todo/schemas/user.py | Version: 1.0 | Path: /collab_todo/schemas/user.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr


class UserResponse(BaseModel):
    id: str
    email: EmailStr
    full_name: str | None = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)
