# File: collab_todo/stores/base.py | Version: 1.1 | Title: Subscribe-then-fetch state containers
"""
A store binds one service scope to local state:

    idle -> loading -> ready | error

`mount()` opens the realtime subscription and then fetches, so a change landing
between the two is still delivered; `unmount()` tears the subscription down.
Pushes from the subscription replace `data` wholesale and leave `status`
alone. A push that arrives while a fetch is running wins over that fetch's
older snapshot. Mutations catch AppError, toast it and return a
fallback; they never re-raise.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from collab_todo.core.errors import AppError
from collab_todo.services.base import Unsubscribe
from collab_todo.stores.toasts import Toaster

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Listener = Callable[["Store[Any]"], None]


class Status(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class Store(Generic[T]):
    load_error_message = "Failed to load"
    toast_load_errors = True

    def __init__(self, toaster: Optional[Toaster] = None):
        self.toaster = toaster or Toaster()
        self.status = Status.IDLE
        self.error: Optional[str] = None
        self.data: T = self._empty()
        self._mounted = False
        self._unsubscribe: Optional[Unsubscribe] = None
        self._pushes = 0
        self._listeners: list[Listener] = []

    # ----- overridables -----

    def _empty(self) -> T:
        return None  # type: ignore[return-value]

    def _fetch(self) -> T:
        raise NotImplementedError

    def _subscribe(self, push: Callable[[T], None]) -> Optional[Unsubscribe]:
        return None

    def _on_mount(self) -> None:
        pass

    def _on_unmount(self) -> None:
        pass

    # ----- lifecycle -----

    @property
    def loading(self) -> bool:
        return self.status is Status.LOADING

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> "Store[T]":
        if self._mounted:
            return self
        self._mounted = True
        try:
            self._unsubscribe = self._subscribe(self._on_push)
        except AppError as exc:
            log.warning(
                "%s: could not subscribe: %s",
                type(self).__name__,
                exc.message,
                extra={"store": type(self).__name__},
            )
        self.refetch()
        self._on_mount()
        return self

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._on_unmount()

    def __enter__(self) -> "Store[T]":
        return self.mount()

    def __exit__(self, *exc_info: Any) -> None:
        self.unmount()

    def refetch(self) -> None:
        self.status = Status.LOADING
        self.error = None
        pushes_before = self._pushes
        try:
            data = self._fetch()
        except AppError as exc:
            self.error = exc.message
            self.status = Status.ERROR
            if self.toast_load_errors:
                self.toaster.error(self.load_error_message, exc.message)
            else:
                log.info("%s: %s", self.load_error_message, exc.message)
            self._notify()
            return
        self.status = Status.READY
        if self._pushes != pushes_before:
            # Newer snapshot already pushed
            self._notify()
            return
        self._set_data(data)

    def _on_push(self, data: T) -> None:
        if not self._mounted:
            return
        self._pushes += 1
        self._set_data(data)

    # ----- state -----

    def _set_data(self, data: T) -> None:
        self.data = data
        self._notify()

    def listen(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(store)` after every state change; returns the detach function."""
        self._listeners.append(listener)

        def detach() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return detach

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ----- mutations -----

    def _mutate(
        self,
        action: Callable[[], R],
        *,
        failure: str,
        success: Union[str, Callable[[R], str], None] = None,
        apply: Optional[Callable[[R], None]] = None,
        fallback: Any = None,
    ) -> Any:
        try:
            result = action()
        except AppError as exc:
            self.toaster.error(failure, exc.message)
            return fallback
        if apply is not None:
            apply(result)
        if success is not None:
            self.toaster.success(success(result) if callable(success) else success)
        return result

    def _invalid(self, message: str) -> None:
        self.toaster.error(message)

    @staticmethod
    def _confirmed(confirm: Optional[Callable[[], bool]]) -> bool:
        return confirm is None or bool(confirm())
