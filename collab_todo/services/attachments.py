# File: collab_todo/services/attachments.py | Version: 1.0 | Title: Attachment blob storage
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Protocol

from collab_todo.core.config import settings
from collab_todo.core.errors import ValidationError

log = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(name: str) -> str:
    cleaned = _UNSAFE.sub("_", Path(name or "").name).strip("._")
    return cleaned or "file"


class AttachmentStorage(Protocol):
    """Where attachment bytes live; todos only keep the returned URL and key."""

    def save(self, key: str, data: bytes, content_type: Optional[str] = None) -> str: ...

    def delete(self, key: str) -> None: ...


class LocalAttachmentStorage:
    def __init__(
        self,
        root: Optional[str | Path] = None,
        base_url: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ):
        self.root = Path(root or settings.ATTACHMENTS_DIR)
        self.base_url = (base_url if base_url is not None else settings.ATTACHMENTS_BASE_URL).rstrip("/")
        self.max_bytes = max_bytes if max_bytes is not None else settings.ATTACHMENT_MAX_BYTES

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValidationError(f"Invalid attachment key {key!r}")
        return path

    def save(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        if len(data) > self.max_bytes:
            raise ValidationError(f"Attachment exceeds the {self.max_bytes} byte limit")
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        log.debug("Stored attachment %s (%d bytes)", key, len(data))
        return f"{self.base_url}/{key}"

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
