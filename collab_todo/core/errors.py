# File: collab_todo/core/errors.py | Version: 1.0 | Title: Domain error taxonomy
from __future__ import annotations


class AppError(Exception):
    """Base class for every error a service may raise."""

    default_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(AppError):
    """No authenticated identity for an operation that requires one."""

    default_message = "User not authenticated"


class PermissionDeniedError(AppError):
    default_message = "Not allowed"


class NotFoundError(AppError):
    """The referenced row does not exist (or is not visible to the caller)."""

    default_message = "Not found"


class ValidationError(AppError):
    default_message = "Invalid input"


class BackendError(AppError):
    """Wraps a failure string reported by the backend adapter."""

    default_message = "Backend request failed"
