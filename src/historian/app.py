"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from historian.adapters.sqlalchemy import SqlAlchemyHistoryTable
from historian.domain.recorder import INITIAL_ACTOR, HistoryRecorder

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from sqlalchemy.engine import Engine

    from historian.adapters.sqlalchemy import EngineSet
    from historian.config import HistoryConfiguration
    from historian.domain.model import Action, EntityMapping
    from historian.domain.ports import SchemaIntrospector


log = getLogger(__name__)


def build_recorder(
    engines: EngineSet,
    *,
    introspector: SchemaIntrospector[Engine] | None = None,
) -> HistoryRecorder:
    """Wire a ``HistoryRecorder`` to SQLAlchemy-backed history tables."""

    def factory(mapping: EntityMapping) -> SqlAlchemyHistoryTable:
        return SqlAlchemyHistoryTable(
            mapping,
            source_engine=engines.source,
            history_engine=engines.history,
            introspector=introspector,
        )

    return HistoryRecorder(factory)


def ensure_history_tables(
    configuration: HistoryConfiguration,
    recorder: HistoryRecorder,
    entity_keys: Iterable[str] | None = None,
    *,
    actor_id: str = INITIAL_ACTOR,
    timestamp: datetime | None = None,
) -> dict[str, bool]:
    """Ensure history tables for the given entities (all when ``entity_keys`` is None).

    Returns, per entity key, whether its history table was created by this call.
    """

    mappings = (
        list(configuration)
        if entity_keys is None
        else [configuration.get(key) for key in entity_keys]
    )
    results: dict[str, bool] = {}
    for mapping in mappings:
        results[mapping.entity_key] = recorder.ensure_history_table(
            mapping, actor_id=actor_id, timestamp=timestamp
        )
    created = sum(results.values())
    log.info("Ensured %s history tables (%s created)", len(results), created)
    return results


def record_change(
    configuration: HistoryConfiguration,
    recorder: HistoryRecorder,
    entity_key: str,
    record: object,
    action: Action,
    *,
    actor_id: str = "",
    timestamp: datetime | None = None,
) -> None:
    """Record one change of ``entity_key``, creating its history table first if needed."""

    mapping = configuration.get(entity_key)
    recorder.ensure_history_table(mapping)
    recorder.record_change(mapping, record, action, actor_id, timestamp)


def render_history_ddl(
    configuration: HistoryConfiguration,
    recorder: HistoryRecorder,
    entity_key: str,
) -> str:
    """Return the ``CREATE TABLE`` statement that would create the entity's history table."""

    table = recorder.history_table(configuration.get(entity_key))
    if not isinstance(table, SqlAlchemyHistoryTable):
        raise TypeError(f"Cannot render DDL for {type(table).__name__}")
    return table.statements.create_table
