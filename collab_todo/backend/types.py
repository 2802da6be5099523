# File: collab_todo/backend/types.py | Version: 1.0 | Title: Backend Adapter contract
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, Optional, Protocol, Sequence, TypeVar, Union

from collab_todo.backend.tables import Tables

T = TypeVar("T")

Row = dict[str, Any]


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class BackendResult(Generic[T]):
    """Adapters report failures as `error` instead of raising."""

    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Database(Protocol):
    def query(
        self,
        table: Tables,
        *,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[OrderBy] = (),
    ) -> BackendResult[list[Row]]: ...

    def query_by_id(self, table: Tables, row_id: str) -> BackendResult[Row]: ...

    def insert(self, table: Tables, fields: Mapping[str, Any]) -> BackendResult[Row]: ...

    def update(self, table: Tables, row_id: str, fields: Mapping[str, Any]) -> BackendResult[Row]: ...

    def remove(self, table: Tables, row_id: str) -> BackendResult[None]: ...

    def rpc(self, procedure: str, params: Mapping[str, Any]) -> BackendResult[Any]: ...


class Auth(Protocol):
    def get_user(self) -> Optional[Identity]: ...


class ChannelLike(Protocol):
    name: str

    @property
    def joined(self) -> bool: ...

    def on(self, event: str, handler: Callable[[Any], None]) -> "ChannelLike": ...

    def subscribe(self) -> "ChannelLike": ...


class Realtime(Protocol):
    def channel(self, name: str) -> ChannelLike: ...

    def remove_channel(self, channel: Union[ChannelLike, str]) -> int: ...


class BackendClient(Protocol):
    db: Database
    auth: Auth
    realtime: Realtime
