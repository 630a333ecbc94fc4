"""Load and resolve history mapping documents."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from historian.domain.model import EntityMapping, PropertyColumnMapping
from historian.domain.naming import default_column_name, default_id_column, default_table_name

from .env import require_env_var
from .errors import ConfigurationError, UnknownEntityError
from .mapping_schema import EntityEntry, MappingDocument

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

DEFAULT_HISTORY_TABLE_SUFFIX: Final[str] = "_history"
CONFIG_PATH_ENV: Final[str] = "HISTORIAN_CONFIG"

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HistoryConfiguration:
    """Caller-owned handle on a resolved mapping document.

    The data-source references are passed through untouched; interpreting them
    is up to whoever provisions connections.
    """

    source_data_source: str
    history_data_source: str
    entities: Mapping[str, EntityMapping] = field(default_factory=lambda: MappingProxyType({}))
    history_table_suffix: str = DEFAULT_HISTORY_TABLE_SUFFIX

    def __post_init__(self) -> None:
        if not isinstance(self.entities, MappingProxyType):
            object.__setattr__(self, "entities", MappingProxyType(dict(self.entities)))

    def get(self, entity_key: str) -> EntityMapping:
        try:
            return self.entities[entity_key]
        except KeyError:
            raise UnknownEntityError(f"No history mapping for entity {entity_key!r}") from None

    def __iter__(self) -> Iterator[EntityMapping]:
        return iter(self.entities.values())

    def __len__(self) -> int:
        return len(self.entities)


def resolve_entity(entry: EntityEntry, history_table_suffix: str) -> EntityMapping:
    """Apply naming defaults to one entity entry.

    Tables are resolved before identifier columns, which derive from the
    resolved table names rather than from the entity key.
    """

    source_table = entry.table.name or default_table_name(entry.key)
    source_id_column = entry.table.id or default_id_column(source_table)
    suffix = entry.history_table_suffix or history_table_suffix
    history_table = entry.history_table.name or f"{source_table}{suffix}"
    history_id_column = entry.history_table.id or default_id_column(history_table)

    property_columns: dict[str, PropertyColumnMapping] = {}
    for prop in entry.properties:
        column = default_column_name(prop.name)
        property_columns[prop.name] = PropertyColumnMapping(
            property_name=prop.name,
            source_column=prop.column or column,
            history_column=prop.history_column or column,
        )

    return EntityMapping(
        entity_key=entry.key,
        source_table=source_table,
        source_id_column=source_id_column,
        history_table=history_table,
        history_id_column=history_id_column,
        property_columns=property_columns,
    )


def resolve_mappings(document: Mapping[str, object]) -> HistoryConfiguration:
    """Resolve a parsed mapping document into a ``HistoryConfiguration``.

    Raises ``ConfigurationError`` when the document is structurally invalid,
    including duplicate entity keys.
    """

    try:
        parsed = MappingDocument.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid history mapping document: {exc}") from exc

    section = parsed.history
    suffix = section.history_table_suffix or DEFAULT_HISTORY_TABLE_SUFFIX
    entities: dict[str, EntityMapping] = {}
    for entry in section.entities:
        mapping = resolve_entity(entry, suffix)
        log.debug("Resolved history mapping %s", mapping)
        entities[mapping.entity_key] = mapping

    return HistoryConfiguration(
        source_data_source=section.source_data_source,
        history_data_source=section.history_data_source,
        entities=entities,
        history_table_suffix=suffix,
    )


def load_mapping_document(path: Path | str) -> dict[str, object]:
    """Read a TOML mapping document from ``path``."""

    try:
        with Path(path).open("rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        raise ConfigurationError(f"Unable to read history mapping file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Malformed history mapping file {path}: {exc}") from exc


def load_configuration(path: Path | str | None = None) -> HistoryConfiguration:
    """Load and resolve the mapping document, defaulting to ``$HISTORIAN_CONFIG``."""

    resolved_path = Path(path) if path is not None else Path(require_env_var(CONFIG_PATH_ENV))
    configuration = resolve_mappings(load_mapping_document(resolved_path))
    log.info("Loaded %s history mappings from %s", len(configuration), resolved_path)
    return configuration
