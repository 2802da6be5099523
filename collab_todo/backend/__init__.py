# File: collab_todo/backend/__init__.py | Version: 1.0 | Title: Backend Adapter exports
from .realtime import ANY_EVENT, ChangeEvent, Channel, RealtimeHub
from .sql import SqlBackend, identity_from_user
from .tables import Tables, channel_name, channels_for_change
from .types import BackendClient, BackendResult, Identity, OrderBy, Row

__all__ = [
    "ANY_EVENT",
    "BackendClient",
    "BackendResult",
    "ChangeEvent",
    "Channel",
    "Identity",
    "OrderBy",
    "RealtimeHub",
    "Row",
    "SqlBackend",
    "Tables",
    "channel_name",
    "channels_for_change",
    "identity_from_user",
]
