"""Port for reading column metadata from a live table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from historian.domain.model import ColumnDefinition


@runtime_checkable
class SchemaIntrospector[TConnectable](Protocol):
    """Read column metadata for one table, in the table's native order."""

    def columns(self, connectable: TConnectable, table_name: str) -> list[ColumnDefinition]: ...
