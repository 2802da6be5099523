# File: collab_todo/services/recurrence.py | Version: 1.0 | Title: "<frequency>[:<interval>]" recurrence rules
"""
Recurrence rules are stored on a todo as a short string such as "daily",
"weekly:2" or "monthly". Occurrences are computed with dateutil's rrule,
anchored at the todo's due date.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dateutil import rrule as _rrule

from collab_todo.core.clock import as_utc
from collab_todo.core.errors import ValidationError

FREQUENCIES = {
    "daily": _rrule.DAILY,
    "weekly": _rrule.WEEKLY,
    "monthly": _rrule.MONTHLY,
    "yearly": _rrule.YEARLY,
}


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: str
    interval: int = 1

    @classmethod
    def parse(cls, rule: str) -> "RecurrenceRule":
        if not rule or not rule.strip():
            raise ValidationError("Recurrence rule is empty")
        frequency, _, interval = rule.strip().lower().partition(":")
        if frequency not in FREQUENCIES:
            raise ValidationError(f"Unknown recurrence frequency {frequency!r}")
        if not interval:
            return cls(frequency)
        try:
            count = int(interval)
        except ValueError:
            raise ValidationError(f"Recurrence interval must be an integer, got {interval!r}")
        if count < 1:
            raise ValidationError("Recurrence interval must be at least 1")
        return cls(frequency, count)

    def __str__(self) -> str:
        return self.frequency if self.interval == 1 else f"{self.frequency}:{self.interval}"

    def series(self, anchor: datetime) -> _rrule.rrule:
        return _rrule.rrule(FREQUENCIES[self.frequency], interval=self.interval, dtstart=as_utc(anchor))

    def next_occurrence(self, anchor: datetime, after: Optional[datetime] = None) -> datetime:
        """First occurrence of the series anchored at `anchor` strictly later than `after`."""
        after = as_utc(after or anchor)
        return self.series(anchor).after(after)


def normalize_rule(rule: Optional[str]) -> Optional[str]:
    if rule is None or not rule.strip():
        return None
    return str(RecurrenceRule.parse(rule))
