"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Action(StrEnum):
    """Change recorded on a history row.

    Stored by name so that adding actions never renumbers existing rows.
    """

    INITIAL = "INITIAL"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SqlType(StrEnum):
    """Type classifier broad enough to special-case temporal columns."""

    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    OTHER = "OTHER"

    @property
    def is_temporal(self) -> bool:
        return self is not SqlType.OTHER
