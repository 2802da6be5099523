# File: collab_todo/core/clock.py | Version: 1.0 | Title: Time helpers shared by backend and services
from __future__ import annotations

import time
from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def now_ms() -> int:
    """Wall-clock milliseconds; used as the coarse position key for new lists and todos."""
    return int(time.time() * 1000)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
