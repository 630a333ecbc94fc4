"""Orchestration of history table lifecycle and change recording."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from historian.domain.errors import HistoryTableExistsError, InvalidRecordError
from historian.domain.model import Action
from historian.domain.ports import IdentifiableRecord

if TYPE_CHECKING:
    from collections.abc import Callable

    from historian.domain.model import EntityMapping
    from historian.domain.ports import HistoryTable, HistoryTableFactory

INITIAL_ACTOR: Final[str] = "initial_creation"

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def record_id_of(record: object) -> object:
    """Return the source-table identifier for ``record``.

    ``record`` is either an ``IdentifiableRecord`` or the identifier value itself.
    """

    value = record.record_id if isinstance(record, IdentifiableRecord) else record
    if value is None:
        raise InvalidRecordError(f"No identifier available for record {record!r}")
    return value


@dataclass(slots=True)
class TableLockRegistry:
    """Hands out one in-process lock per history table name."""

    _locks: dict[str, threading.Lock] = field(default_factory=dict[str, threading.Lock])
    _guard: threading.Lock = field(default_factory=threading.Lock)

    def lock_for(self, table_name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(table_name)
            if lock is None:
                lock = threading.Lock()
                self._locks[table_name] = lock
            return lock


class HistoryRecorder:
    """Public surface of the engine: ensure a history table, then record changes.

    Any trigger mechanism (ORM hook, event consumer, explicit call) drives the
    engine through these two methods.
    """

    def __init__(
        self,
        history_table_factory: HistoryTableFactory,
        *,
        clock: Callable[[], datetime] = _utcnow,
        locks: TableLockRegistry | None = None,
    ) -> None:
        self._factory = history_table_factory
        self._clock = clock
        self._locks = locks or TableLockRegistry()
        self._tables: dict[str, HistoryTable] = {}
        self._tables_guard = threading.Lock()
        self._build_locks = TableLockRegistry()

    def history_table(self, mapping: EntityMapping) -> HistoryTable:
        key = mapping.entity_key
        with self._tables_guard:
            table = self._tables.get(key)
        if table is not None:
            return table
        # built outside the shared guard; only callers for the same entity wait
        with self._build_locks.lock_for(key):
            with self._tables_guard:
                table = self._tables.get(key)
            if table is None:
                table = self._factory(mapping)
                with self._tables_guard:
                    self._tables[key] = table
            return table

    def ensure_history_table(
        self,
        mapping: EntityMapping,
        *,
        actor_id: str = INITIAL_ACTOR,
        timestamp: datetime | None = None,
    ) -> bool:
        """Create and backfill the history table if it does not exist yet.

        Returns ``True`` when this call created the table. The check, create and
        populate steps run under a lock keyed on the history table name, and a
        create that loses a race against another process is treated as benign.
        A failed populate drops the table again so the next call starts over.
        """

        table = self.history_table(mapping)
        with self._locks.lock_for(mapping.history_table):
            if table.exists():
                return False
            try:
                table.create()
            except HistoryTableExistsError:
                log.info(
                    "History table %s was created concurrently; skipping backfill",
                    mapping.history_table,
                )
                return False
            try:
                populated = table.populate(actor_id, timestamp or self._clock())
            except Exception:
                # a history table without its INITIAL rows must not survive
                log.warning(
                    "Backfill of %s failed; dropping the new history table",
                    mapping.history_table,
                )
                table.drop()
                raise
        log.info(
            "Created history table %s for %s with %s initial rows",
            mapping.history_table,
            mapping.entity_key,
            populated,
        )
        return True

    def record_change(
        self,
        mapping: EntityMapping,
        record: object,
        action: Action,
        actor_id: str = "",
        timestamp: datetime | None = None,
    ) -> None:
        """Append the current state of ``record`` to the history table."""

        if action is Action.INITIAL:
            raise ValueError("INITIAL rows are only written by the backfill")
        record_id = record_id_of(record)
        table = self.history_table(mapping)
        table.insert(record_id, action, actor_id, timestamp or self._clock())
        log.debug(
            "Recorded %s of %s %s by %r", action, mapping.entity_key, record_id, actor_id
        )
