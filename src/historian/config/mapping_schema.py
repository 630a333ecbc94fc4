"""Pydantic models describing the structure of a history mapping document."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class MappingBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class TableReference(MappingBaseModel):
    """Optional table name and identifier column; omitted values are derived."""

    name: str | None = None
    id: str | None = None

    _normalize = field_validator("name", "id", mode="before")(_blank_to_none)


class PropertyEntry(MappingBaseModel):
    name: str = Field(min_length=1)
    column: str | None = None
    history_column: str | None = Field(default=None, alias="history-column")

    _normalize = field_validator("column", "history_column", mode="before")(_blank_to_none)


class EntityEntry(MappingBaseModel):
    key: str = Field(min_length=1)
    table: TableReference = Field(default_factory=TableReference)
    history_table: TableReference = Field(default_factory=TableReference, alias="history-table")
    history_table_suffix: str | None = Field(default=None, alias="history-table-suffix")
    properties: list[PropertyEntry] = Field(
        default_factory=list["PropertyEntry"], alias="property"
    )

    _normalize = field_validator("history_table_suffix", mode="before")(_blank_to_none)

    @model_validator(mode="after")
    def _unique_properties(self) -> EntityEntry:
        seen: set[str] = set()
        for entry in self.properties:
            if entry.name in seen:
                raise ValueError(f"duplicate property {entry.name!r} for entity {self.key!r}")
            seen.add(entry.name)
        return self


class HistorySection(MappingBaseModel):
    source_data_source: str = Field(min_length=1, alias="source-data-source")
    history_data_source: str = Field(min_length=1, alias="history-data-source")
    history_table_suffix: str | None = Field(default=None, alias="history-table-suffix")
    entities: list[EntityEntry] = Field(min_length=1, alias="entity")

    _normalize = field_validator("history_table_suffix", mode="before")(_blank_to_none)

    @model_validator(mode="after")
    def _unique_entity_keys(self) -> HistorySection:
        seen: set[str] = set()
        for entry in self.entities:
            if entry.key in seen:
                raise ValueError(f"duplicate entity key {entry.key!r}")
            seen.add(entry.key)
        return self


class MappingDocument(MappingBaseModel):
    history: HistorySection
