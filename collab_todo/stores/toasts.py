# File: collab_todo/stores/toasts.py | Version: 1.0 | Title: Transient user-facing messages
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional

log = logging.getLogger("collab_todo.toasts")


class ToastLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Toast:
    level: ToastLevel
    message: str
    description: Optional[str] = None


_LOG_LEVELS = {
    ToastLevel.SUCCESS: logging.INFO,
    ToastLevel.INFO: logging.INFO,
    ToastLevel.ERROR: logging.WARNING,
}


class Toaster:
    """Keeps the most recent toasts; every toast is also logged."""

    def __init__(self, maxlen: int = 50):
        self._toasts: deque[Toast] = deque(maxlen=maxlen)

    def _push(self, level: ToastLevel, message: str, description: Optional[str]) -> Toast:
        toast = Toast(level, message, description)
        self._toasts.append(toast)
        if description:
            log.log(_LOG_LEVELS[level], "%s: %s", message, description)
        else:
            log.log(_LOG_LEVELS[level], "%s", message)
        return toast

    def success(self, message: str, description: Optional[str] = None) -> Toast:
        return self._push(ToastLevel.SUCCESS, message, description)

    def error(self, message: str, description: Optional[str] = None) -> Toast:
        return self._push(ToastLevel.ERROR, message, description)

    def info(self, message: str, description: Optional[str] = None) -> Toast:
        return self._push(ToastLevel.INFO, message, description)

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    @property
    def last(self) -> Optional[Toast]:
        return self._toasts[-1] if self._toasts else None

    def clear(self) -> None:
        self._toasts.clear()
