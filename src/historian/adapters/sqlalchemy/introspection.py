"""Column metadata introspection backed by the SQLAlchemy inspector."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from sqlalchemy import inspect
from sqlalchemy import types as sqltypes
from sqlalchemy.exc import CompileError, NoSuchTableError, SQLAlchemyError

from historian.domain.errors import IntrospectionError
from historian.domain.model import ColumnDefinition, SqlType

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect, Engine
    from sqlalchemy.engine.interfaces import ReflectedColumn

UNSIGNED_TOKEN: Final[str] = " UNSIGNED"

_TYPE_ARGUMENTS = re.compile(r"\([^)]*\)")
_TRAILING_CLAUSES = re.compile(r"\s+(?:CHARACTER SET|COLLATE)\s+\S+", re.IGNORECASE)

log = getLogger(__name__)


def parse_type_name(raw_type_name: str) -> tuple[str, bool]:
    """Split a raw type name into its clean name and an unsigned flag.

    ``INTEGER UNSIGNED`` -> ``("INTEGER", True)``. The token match is
    case-sensitive and requires the leading space.
    """

    unsigned = UNSIGNED_TOKEN in raw_type_name
    return raw_type_name.replace(UNSIGNED_TOKEN, ""), unsigned


def classify(column_type: sqltypes.TypeEngine[object]) -> SqlType:
    if isinstance(column_type, sqltypes.DateTime):
        return SqlType.TIMESTAMP
    if isinstance(column_type, sqltypes.Date):
        return SqlType.DATE
    if isinstance(column_type, sqltypes.Time):
        return SqlType.TIME
    return SqlType.OTHER


def _int_attribute(column_type: object, *names: str) -> int:
    for name in names:
        value = getattr(column_type, name, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


def column_size(column_type: sqltypes.TypeEngine[object]) -> int:
    """Return the length, decimal precision or display width of ``column_type``.

    Floating point precision is in bits and never part of the rendered type.
    """

    if isinstance(column_type, sqltypes.Float):
        return _int_attribute(column_type, "length", "display_width")
    return _int_attribute(column_type, "length", "precision", "display_width")


def raw_type_name(column_type: sqltypes.TypeEngine[object], dialect: Dialect) -> str:
    """Render the dialect type name without its length/precision arguments."""

    compiled = column_type.compile(dialect=dialect)
    stripped = _TRAILING_CLAUSES.sub("", _TYPE_ARGUMENTS.sub("", compiled))
    return " ".join(stripped.split())


def column_definition(column: ReflectedColumn, dialect: Dialect) -> ColumnDefinition:
    column_type = column["type"]
    type_name, unsigned = parse_type_name(raw_type_name(column_type, dialect))
    # MySQL integer types keep the flag on the type object as well
    unsigned = unsigned or bool(getattr(column_type, "unsigned", False))
    return ColumnDefinition(
        name=column["name"],
        type_name=type_name,
        size=column_size(column_type),
        sql_type=classify(column_type),
        decimal_digits=_int_attribute(column_type, "scale"),
        unsigned=unsigned,
    )


class SqlAlchemySchemaIntrospector:
    """Read ``ColumnDefinition`` objects for a table through ``sqlalchemy.inspect``."""

    def columns(self, connectable: Engine, table_name: str) -> list[ColumnDefinition]:
        try:
            with connectable.connect() as connection:
                reflected = inspect(connection).get_columns(table_name)
                definitions = [column_definition(column, connection.dialect) for column in reflected]
        except NoSuchTableError as exc:
            raise IntrospectionError(table_name, f"Table {table_name} does not exist") from exc
        except CompileError as exc:
            raise IntrospectionError(
                table_name, f"Unable to determine column types of table {table_name}"
            ) from exc
        except SQLAlchemyError as exc:
            raise IntrospectionError(
                table_name, f"Unable to read column metadata of table {table_name}"
            ) from exc

        if not definitions:
            raise IntrospectionError(table_name, f"Table {table_name} has no columns")
        log.debug("Introspected %s columns of %s", len(definitions), table_name)
        return definitions


if TYPE_CHECKING:
    from historian.domain.ports import SchemaIntrospector

    _introspector_check: SchemaIntrospector[Engine] = SqlAlchemySchemaIntrospector()
