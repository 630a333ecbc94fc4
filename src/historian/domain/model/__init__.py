"""Domain model for history tables."""

from __future__ import annotations

from .audit import AuditRow
from .columns import ColumnDefinition
from .enums import Action, SqlType
from .mapping import EntityMapping, PropertyColumnMapping

__all__ = [
    "Action",
    "AuditRow",
    "ColumnDefinition",
    "EntityMapping",
    "PropertyColumnMapping",
    "SqlType",
]
