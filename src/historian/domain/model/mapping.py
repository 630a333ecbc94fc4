"""Resolved entity -> table mappings."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class PropertyColumnMapping:
    property_name: str
    source_column: str
    history_column: str


@dataclass(frozen=True, slots=True)
class EntityMapping:
    """Association between an audited entity and its source/history tables.

    Every string field is non-empty once resolved. Instances are immutable and
    handed out read-only by ``HistoryConfiguration``.
    """

    entity_key: str
    source_table: str
    source_id_column: str
    history_table: str
    history_id_column: str
    property_columns: Mapping[str, PropertyColumnMapping] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        for name in (
            "entity_key",
            "source_table",
            "source_id_column",
            "history_table",
            "history_id_column",
        ):
            if not getattr(self, name):
                raise ValueError(f"EntityMapping.{name} must not be empty")
        if not isinstance(self.property_columns, MappingProxyType):
            object.__setattr__(
                self, "property_columns", MappingProxyType(dict(self.property_columns))
            )
