"""SQLAlchemy adapter package for historian."""

from __future__ import annotations

from .engines import EngineSet, create_engines, resolve_database_uri
from .history_table import SqlAlchemyHistoryTable, error_code
from .introspection import SqlAlchemySchemaIntrospector, parse_type_name

__all__ = [
    "EngineSet",
    "SqlAlchemyHistoryTable",
    "SqlAlchemySchemaIntrospector",
    "create_engines",
    "error_code",
    "parse_type_name",
    "resolve_database_uri",
]
