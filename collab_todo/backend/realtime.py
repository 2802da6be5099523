# File: collab_todo/backend/realtime.py | Version: 1.0 | Title: In-process change feed (channels + hub)
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Union

from collab_todo.core.clock import utcnow

log = logging.getLogger(__name__)

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")
ANY_EVENT = "*"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    new: Optional[dict[str, Any]] = None
    old: Optional[dict[str, Any]] = None
    commit_timestamp: datetime = field(default_factory=utcnow)


Handler = Callable[[ChangeEvent], None]


class Channel:
    """
    A named subscription. Handlers are attached with `on()` and start
    receiving events once `subscribe()` joins the channel to its hub.
    """

    def __init__(self, hub: "RealtimeHub", name: str):
        self.name = name
        self._hub = hub
        self._handlers: list[tuple[str, Handler]] = []
        self._joined = False

    def __repr__(self) -> str:
        state = "joined" if self._joined else "closed"
        return f"<Channel {self.name!r} {state}>"

    @property
    def joined(self) -> bool:
        return self._joined

    def on(self, event: str, handler: Handler) -> "Channel":
        event = event.upper()
        if event != ANY_EVENT and event not in EVENT_TYPES:
            raise ValueError(f"Unknown event pattern {event!r}")
        self._handlers.append((event, handler))
        return self

    def subscribe(self) -> "Channel":
        self._hub._join(self)
        self._joined = True
        return self

    def unsubscribe(self) -> None:
        self._hub.remove_channel(self)

    def _close(self) -> None:
        self._joined = False

    def deliver(self, event: ChangeEvent) -> None:
        for pattern, handler in list(self._handlers):
            # Re-checked per handler: a handler may tear its own channel down
            if not self._joined:
                return
            if pattern != ANY_EVENT and pattern != event.event_type:
                continue
            try:
                handler(event)
            except Exception:
                log.exception(
                    "Realtime handler failed on channel %s",
                    self.name,
                    extra={"channel": self.name, "table": event.table, "event_type": event.event_type},
                )


class RealtimeHub:
    """
    Thread-safe registry of joined channels. One hub is built per process and
    shared by every backend instance that should observe the same changes.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._channels: dict[str, list[Channel]] = {}

    def channel(self, name: str) -> Channel:
        return Channel(self, name)

    def _join(self, channel: Channel) -> None:
        with self._lock:
            joined = self._channels.setdefault(channel.name, [])
            if channel not in joined:
                joined.append(channel)
        log.debug("Channel joined: %s", channel.name, extra={"channel": channel.name})

    def remove_channel(self, channel: Union[Channel, str]) -> int:
        """Close one channel, or every channel with the given name. Returns how many were closed."""
        with self._lock:
            if isinstance(channel, str):
                removed = self._channels.pop(channel, [])
            else:
                joined = self._channels.get(channel.name, [])
                removed = [c for c in joined if c is channel]
                remaining = [c for c in joined if c is not channel]
                if remaining:
                    self._channels[channel.name] = remaining
                else:
                    self._channels.pop(channel.name, None)
            for c in removed:
                c._close()
        return len(removed)

    def channels(self, name: Optional[str] = None) -> list[Channel]:
        with self._lock:
            if name is not None:
                return list(self._channels.get(name, []))
            return [c for group in self._channels.values() for c in group]

    def publish(self, name: str, event: ChangeEvent) -> int:
        with self._lock:
            targets = list(self._channels.get(name, []))
        for channel in targets:
            channel.deliver(event)
        return len(targets)

    def publish_many(self, names: list[str], event: ChangeEvent) -> int:
        return sum(self.publish(name, event) for name in names)
