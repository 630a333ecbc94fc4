"""Column metadata read from a live source table."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import SqlType


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    """One source column, in the table's native order.

    ``type_name`` is the clean type name (``UNSIGNED`` already stripped);
    ``unsigned`` carries the signedness separately.
    """

    name: str
    type_name: str
    size: int = 0
    sql_type: SqlType = SqlType.OTHER
    decimal_digits: int = 0
    unsigned: bool = False

    @property
    def is_temporal(self) -> bool:
        return self.sql_type.is_temporal
