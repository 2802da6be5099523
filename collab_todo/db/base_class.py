# File: collab_todo/db/base_class.py | Version: 1.0 | Path: /collab_todo/db/base_class.py
from datetime import datetime
from typing import Any, Dict

from sqlalchemy.orm import declarative_base

from collab_todo.core.clock import as_utc


class RowMixin:
    """Rows leave the backend as plain dicts keyed by column name."""

    def to_dict(self) -> Dict[str, Any]:
        row = {}
        for column in self.__table__.columns:  # type: ignore[attr-defined]
            value = getattr(self, column.key)
            row[column.name] = as_utc(value) if isinstance(value, datetime) else value
        return row


# Single, authoritative Base for all models
Base = declarative_base(cls=RowMixin)
