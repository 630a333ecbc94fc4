"""DDL/DML generation for history tables.

Statements are built from an ordered column list and rendered on demand; the
same ordering drives the ``CREATE TABLE`` column list and the positional
``INSERT`` binds, so the two can never drift apart. Nothing in this module
touches a connection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from historian.domain.model import ColumnDefinition, EntityMapping

ACTION_COLUMN: Final[str] = "action"
ACTION_BY_COLUMN: Final[str] = "action_by"
ACTION_TIME_COLUMN: Final[str] = "action_time"
AUDIT_COLUMNS: Final[tuple[str, ...]] = (ACTION_COLUMN, ACTION_BY_COLUMN, ACTION_TIME_COLUMN)

_PLACEHOLDERS: Final[dict[str, Callable[[int], str]]] = {
    "qmark": lambda _index: "?",
    "format": lambda _index: "%s",
    "pyformat": lambda _index: "%s",
    "numeric": lambda index: f":{index}",
    "named": lambda index: f":p{index}",
}


def placeholder(paramstyle: str, index: int) -> str:
    """Return the bind marker for the 1-based ``index`` in a DB-API ``paramstyle``."""

    try:
        return _PLACEHOLDERS[paramstyle](index)
    except KeyError:
        raise ValueError(f"Unsupported paramstyle: {paramstyle}") from None


@dataclass(frozen=True, slots=True)
class SqlDialect:
    """Dialect-specific fragments of the history table DDL."""

    name: str
    surrogate_column: str
    trailing_primary_key: bool = True
    supports_unsigned: bool = True
    action_type: str = "VARCHAR(255) NOT NULL"
    action_by_type: str = "VARCHAR(255) NOT NULL"
    action_time_type: str = "DATETIME NOT NULL"

    def surrogate(self, id_column: str) -> str:
        return self.surrogate_column.format(name=id_column)

    def audit_column_types(self) -> tuple[tuple[str, str], ...]:
        return (
            (ACTION_COLUMN, self.action_type),
            (ACTION_BY_COLUMN, self.action_by_type),
            (ACTION_TIME_COLUMN, self.action_time_type),
        )


MYSQL: Final[SqlDialect] = SqlDialect(
    name="mysql",
    surrogate_column="{name} INT(10) UNSIGNED NOT NULL AUTO_INCREMENT",
)
SQLITE: Final[SqlDialect] = SqlDialect(
    name="sqlite",
    surrogate_column="{name} INTEGER PRIMARY KEY AUTOINCREMENT",
    trailing_primary_key=False,
    supports_unsigned=False,
)
POSTGRESQL: Final[SqlDialect] = SqlDialect(
    name="postgresql",
    surrogate_column="{name} SERIAL NOT NULL",
    supports_unsigned=False,
    action_time_type="TIMESTAMP NOT NULL",
)

_DIALECTS: Final[dict[str, SqlDialect]] = {
    "mysql": MYSQL,
    "mariadb": MYSQL,
    "sqlite": SQLITE,
    "postgresql": POSTGRESQL,
}


def dialect_for(name: str) -> SqlDialect:
    try:
        return _DIALECTS[name]
    except KeyError:
        raise ValueError(f"Unsupported SQL dialect: {name}") from None


@dataclass(frozen=True, slots=True)
class ColumnClause:
    """A single column of the history table DDL."""

    column: ColumnDefinition

    def render(self, dialect: SqlDialect = MYSQL) -> str:
        column = self.column
        rendered = f"{column.name} {column.type_name}"
        # temporal types never take a length/precision clause
        if column.is_temporal:
            return rendered
        if column.size > 0:
            if column.decimal_digits:
                rendered += f"({column.size},{column.decimal_digits})"
            else:
                rendered += f"({column.size})"
        if column.unsigned and dialect.supports_unsigned:
            rendered += " UNSIGNED"
        return rendered


@dataclass(frozen=True, slots=True)
class CreateTableStatement:
    table: str
    id_column: str
    columns: tuple[ColumnClause, ...]
    dialect: SqlDialect = MYSQL

    def render(self) -> str:
        if not self.columns:
            return ""
        items = [self.dialect.surrogate(self.id_column)]
        items.extend(clause.render(self.dialect) for clause in self.columns)
        items.extend(f"{name} {type_}" for name, type_ in self.dialect.audit_column_types())
        if self.dialect.trailing_primary_key:
            items.append(f"PRIMARY KEY ({self.id_column})")
        return f"CREATE TABLE {self.table} ({', '.join(items)})"


@dataclass(frozen=True, slots=True)
class InsertStatement:
    table: str
    column_names: tuple[str, ...]
    paramstyle: str = "qmark"

    def render(self) -> str:
        if not self.column_names:
            return ""
        names = (*self.column_names, *AUDIT_COLUMNS)
        markers = [placeholder(self.paramstyle, index) for index in range(1, len(names) + 1)]
        return (
            f"INSERT INTO {self.table} ({', '.join(names)}) VALUES ({', '.join(markers)})"
        )


@dataclass(frozen=True, slots=True)
class SelectStatement:
    table: str
    where_column: str | None = None
    paramstyle: str = "qmark"

    def render(self) -> str:
        rendered = f"SELECT * FROM {self.table}"
        if self.where_column is not None:
            rendered += f" WHERE {self.where_column} = {placeholder(self.paramstyle, 1)}"
        return rendered


def create_table_sql(
    history_table: str,
    history_id_column: str,
    columns: Sequence[ColumnDefinition],
    *,
    dialect: SqlDialect = MYSQL,
) -> str:
    """Return the history table DDL, or ``""`` when there are no columns to mirror."""

    clauses = tuple(ColumnClause(column) for column in columns)
    return CreateTableStatement(history_table, history_id_column, clauses, dialect).render()


def drop_table_sql(history_table: str) -> str:
    return f"DROP TABLE {history_table}"


def select_all_sql(source_table: str) -> str:
    return SelectStatement(source_table).render()


def select_by_id_sql(source_table: str, source_id_column: str, *, paramstyle: str = "qmark") -> str:
    return SelectStatement(source_table, source_id_column, paramstyle).render()


def insert_row_sql(
    history_table: str,
    columns: Sequence[ColumnDefinition],
    *,
    paramstyle: str = "qmark",
) -> str:
    """Return the parameterised history insert, or ``""`` when there are no columns."""

    names = tuple(column.name for column in columns)
    return InsertStatement(history_table, names, paramstyle).render()


@dataclass(frozen=True, slots=True)
class HistoryStatements:
    """All statements needed to maintain one history table.

    ``paramstyle`` applies to the history insert and ``source_paramstyle`` to the
    source select, since the two tables may live behind different drivers.
    """

    history_table: str
    history_id_column: str
    source_table: str
    source_id_column: str
    columns: tuple[ColumnDefinition, ...]
    dialect: SqlDialect = MYSQL
    paramstyle: str = "qmark"
    source_paramstyle: str = "qmark"

    @classmethod
    def for_mapping(
        cls,
        mapping: EntityMapping,
        columns: Sequence[ColumnDefinition],
        *,
        dialect: SqlDialect = MYSQL,
        paramstyle: str = "qmark",
        source_paramstyle: str = "qmark",
    ) -> HistoryStatements:
        return cls(
            history_table=mapping.history_table,
            history_id_column=mapping.history_id_column,
            source_table=mapping.source_table,
            source_id_column=mapping.source_id_column,
            columns=tuple(columns),
            dialect=dialect,
            paramstyle=paramstyle,
            source_paramstyle=source_paramstyle,
        )

    @property
    def create_table(self) -> str:
        return create_table_sql(
            self.history_table, self.history_id_column, self.columns, dialect=self.dialect
        )

    @property
    def drop_table(self) -> str:
        return drop_table_sql(self.history_table)

    @property
    def select_all(self) -> str:
        return select_all_sql(self.source_table)

    @property
    def select_by_id(self) -> str:
        return select_by_id_sql(
            self.source_table, self.source_id_column, paramstyle=self.source_paramstyle
        )

    @property
    def insert_row(self) -> str:
        return insert_row_sql(self.history_table, self.columns, paramstyle=self.paramstyle)
