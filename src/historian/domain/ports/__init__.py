"""Domain port definitions for adapters."""

from __future__ import annotations

from .history import HistoryTable, HistoryTableFactory, IdentifiableRecord
from .introspection import SchemaIntrospector

__all__ = [
    "HistoryTable",
    "HistoryTableFactory",
    "IdentifiableRecord",
    "SchemaIntrospector",
]
