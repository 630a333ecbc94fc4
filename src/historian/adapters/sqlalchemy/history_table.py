"""History table operations executed through SQLAlchemy engines.

Every generated statement is logged at DEBUG before it runs.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from historian.config.errors import ConfigurationError
from historian.domain.errors import HistoryTableExistsError, ManagerError
from historian.domain.model import Action, AuditRow
from historian.domain.statements import HistoryStatements, dialect_for

from .introspection import SqlAlchemySchemaIntrospector

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy.engine import Engine

    from historian.domain.model import ColumnDefinition, EntityMapping
    from historian.domain.ports import SchemaIntrospector

log = getLogger(__name__)


def error_code(exc: SQLAlchemyError) -> int | str | None:
    """Return the database error code reported by the DB-API driver, if any."""

    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    for attribute in ("sqlite_errorname", "pgcode", "errno"):
        value = getattr(orig, attribute, None)
        if value is not None:
            return value
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


class SqlAlchemyHistoryTable:
    """Maintain the history table of one entity mapping.

    The source table is only ever read. Every operation acquires its own
    connection and releases it before returning, also on failure; nothing is
    retried.
    """

    def __init__(
        self,
        mapping: EntityMapping,
        *,
        source_engine: Engine,
        history_engine: Engine,
        columns: Sequence[ColumnDefinition] | None = None,
        introspector: SchemaIntrospector[Engine] | None = None,
    ) -> None:
        self._mapping = mapping
        self._source_engine = source_engine
        self._history_engine = history_engine
        if columns is None:
            columns = (introspector or SqlAlchemySchemaIntrospector()).columns(
                source_engine, mapping.source_table
            )
        self._columns = tuple(columns)
        self._statements = HistoryStatements.for_mapping(
            mapping,
            self._columns,
            dialect=dialect_for(history_engine.dialect.name),
            paramstyle=history_engine.dialect.paramstyle,
            source_paramstyle=source_engine.dialect.paramstyle,
        )

    @property
    def mapping(self) -> EntityMapping:
        return self._mapping

    @property
    def columns(self) -> tuple[ColumnDefinition, ...]:
        return self._columns

    @property
    def statements(self) -> HistoryStatements:
        return self._statements

    def exists(self) -> bool:
        table = self._mapping.history_table
        try:
            with self._history_engine.connect() as connection:
                return inspect(connection).has_table(table)
        except SQLAlchemyError as exc:
            raise self._error(f"Unable to check if the history table {table} exists", exc) from exc

    def create(self) -> None:
        table = self._mapping.history_table
        sql = self._statements.create_table
        if not sql:
            raise ConfigurationError(
                f"Source table {self._mapping.source_table} has no columns to mirror "
                f"for {self._mapping.entity_key}"
            )
        log.debug("Create the history table %s with SQL: %s", table, sql)
        try:
            with self._history_engine.begin() as connection:
                connection.exec_driver_sql(sql)
        except SQLAlchemyError as exc:
            if self._exists_after_failure():
                raise HistoryTableExistsError(
                    self._mapping.entity_key,
                    f"The history table {table} already exists",
                    error_code=error_code(exc),
                ) from exc
            raise self._error(f"Unable to create the history table {table}", exc) from exc

    def drop(self) -> None:
        table = self._mapping.history_table
        sql = self._statements.drop_table
        log.debug("Drop the history table %s with SQL: %s", table, sql)
        try:
            with self._history_engine.begin() as connection:
                connection.exec_driver_sql(sql)
        except SQLAlchemyError as exc:
            raise self._error(f"Unable to drop the history table {table}", exc) from exc

    def populate(self, actor_id: str, timestamp: datetime) -> int:
        """Copy every source row into the history table tagged ``INITIAL``."""

        try:
            rows = self._fetch(self._statements.select_all)
        except SQLAlchemyError as exc:
            raise self._error(
                f"Unable to read the rows of {self._mapping.source_table}", exc
            ) from exc
        if not rows:
            log.info("Source table %s is empty; nothing to backfill", self._mapping.source_table)
            return 0

        parameters = [
            self._bind(AuditRow(row, Action.INITIAL, actor_id, timestamp)) for row in rows
        ]
        sql = self._statements.insert_row
        log.debug("Populate the history table %s with SQL: %s", self._mapping.history_table, sql)
        try:
            with self._history_engine.begin() as connection:
                connection.exec_driver_sql(sql, parameters)
        except SQLAlchemyError as exc:
            raise self._error(
                f"Unable to populate the history table {self._mapping.history_table}", exc
            ) from exc
        return len(parameters)

    def insert(
        self,
        record_id: object,
        action: Action,
        actor_id: str,
        timestamp: datetime,
    ) -> None:
        """Append the current source row ``record_id`` tagged with ``action``."""

        try:
            rows = self._fetch(self._statements.select_by_id, (record_id,))
        except SQLAlchemyError as exc:
            raise self._error(
                f"Unable to read row {record_id!r} of {self._mapping.source_table}", exc
            ) from exc
        if rows:
            source_columns = rows[0]
        else:
            log.warning(
                "Row %r of %s not found; recording %s with identifier only",
                record_id,
                self._mapping.source_table,
                action,
            )
            source_columns = {self._mapping.source_id_column: record_id}

        sql = self._statements.insert_row
        log.debug("Insert into the history table %s with SQL: %s", self._mapping.history_table, sql)
        try:
            with self._history_engine.begin() as connection:
                connection.exec_driver_sql(
                    sql, self._bind(AuditRow(source_columns, action, actor_id, timestamp))
                )
        except SQLAlchemyError as exc:
            raise self._error(
                f"Unable to insert into the history table {self._mapping.history_table}", exc
            ) from exc

    def _fetch(
        self, sql: str, parameters: tuple[object, ...] | None = None
    ) -> list[dict[str, object]]:
        log.debug("Read source rows with SQL: %s", sql)
        with self._source_engine.connect() as connection:
            result = connection.exec_driver_sql(sql, parameters)
            return [dict(row) for row in result.mappings()]

    def _bind(self, row: AuditRow) -> tuple[object, ...]:
        # sqlite3 has no adapter for datetime anymore; hand it ISO text instead
        timestamp_value = (
            row.timestamp.isoformat(sep=" ") if self._history_engine.dialect.name == "sqlite" else None
        )
        return row.bind_parameters(self._columns, timestamp_value=timestamp_value)

    def _exists_after_failure(self) -> bool:
        try:
            return self.exists()
        except ManagerError:
            log.debug("Existence check after failed create also failed", exc_info=True)
            return False

    def _error(self, message: str, exc: SQLAlchemyError) -> ManagerError:
        return ManagerError(self._mapping.entity_key, message, error_code=error_code(exc))


if TYPE_CHECKING:
    from historian.domain.ports import HistoryTable

    def _history_table_check(table: SqlAlchemyHistoryTable) -> HistoryTable:
        return table
