"""Ports for maintaining history tables."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from historian.domain.model import Action, EntityMapping


@runtime_checkable
class IdentifiableRecord(Protocol):
    """A record that can name the source-table row it was persisted as."""

    @property
    def record_id(self) -> object: ...


@runtime_checkable
class HistoryTable(Protocol):
    """Lifecycle of one history table: exists -> create -> populate -> insert*."""

    @property
    def mapping(self) -> EntityMapping: ...

    def exists(self) -> bool: ...

    def create(self) -> None: ...

    def drop(self) -> None: ...

    def populate(self, actor_id: str, timestamp: datetime) -> int: ...

    def insert(
        self,
        record_id: object,
        action: Action,
        actor_id: str,
        timestamp: datetime,
    ) -> None: ...


type HistoryTableFactory = Callable[[EntityMapping], HistoryTable]
