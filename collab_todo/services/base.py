# File: collab_todo/services/base.py | Version: 1.0 | Title: Shared plumbing for adapter-backed services
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

from collab_todo.backend.realtime import ANY_EVENT, ChangeEvent
from collab_todo.backend.types import BackendClient, BackendResult, Identity, Row
from collab_todo.core.clock import now_ms
from collab_todo.core.errors import AppError, AuthError, BackendError, NotFoundError, ValidationError

log = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class BaseService:
    """
    Services receive their backend explicitly; nothing here reaches for a
    process-wide client. `clock` supplies position keys and is swappable in tests.
    """

    def __init__(self, backend: BackendClient, *, clock: Callable[[], int] = now_ms):
        self.backend = backend
        self.clock = clock

    def _require_user(self) -> Identity:
        user = self.backend.auth.get_user()
        if user is None:
            raise AuthError()
        return user

    @staticmethod
    def _unwrap(result: BackendResult[T]) -> Optional[T]:
        if result.error:
            raise BackendError(result.error)
        return result.data

    @classmethod
    def _unwrap_row(
        cls,
        result: BackendResult[Row],
        message: str,
        error_cls: type[AppError] = NotFoundError,
    ) -> Row:
        row = cls._unwrap(result)
        if row is None:
            raise error_cls(message)
        return row

    def _subscribe(self, name: str, fetch: Callable[[], Any], callback: Callable[[Any], None]) -> Unsubscribe:
        """
        Re-fetch the whole collection on any change published to `name` and
        hand the fresh snapshot to `callback`. Returns the teardown function.
        """
        realtime = self.backend.realtime

        def _on_change(event: ChangeEvent) -> None:
            try:
                snapshot = fetch()
            except AppError as exc:
                log.warning(
                    "Re-fetch after %s on %s failed: %s",
                    event.event_type,
                    name,
                    exc.message,
                    extra={"channel": name, "event_type": event.event_type},
                )
                return
            # Torn down while the re-fetch was running
            if not channel.joined:
                return
            callback(snapshot)

        channel = realtime.channel(name).on(ANY_EVENT, _on_change).subscribe()

        def unsubscribe() -> None:
            realtime.remove_channel(channel)

        return unsubscribe


def enum_value(enum_cls: type, value: Any, label: str) -> str:
    """Coerce `value` into one of `enum_cls`'s stored strings or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value.value
    try:
        return enum_cls(str(value).strip().lower()).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {label} {value!r}; expected one of: {allowed}")
