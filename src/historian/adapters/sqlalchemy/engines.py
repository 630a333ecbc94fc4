"""Engine provisioning for the source and history data sources."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine

from historian.config.env import require_env_var

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from historian.config.mappings import HistoryConfiguration

log = getLogger(__name__)


def resolve_database_uri(reference: str) -> str:
    """Turn a data-source reference into a database URI.

    References containing ``://`` are URIs already; anything else names an
    environment variable holding the URI.
    """

    if "://" in reference:
        return reference
    return require_env_var(reference)


@dataclass(frozen=True, slots=True)
class EngineSet:
    source: Engine
    history: Engine

    def dispose(self) -> None:
        self.source.dispose()
        if self.history is not self.source:
            self.history.dispose()

    def __enter__(self) -> EngineSet:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.dispose()
        return False


def create_engines(configuration: HistoryConfiguration) -> EngineSet:
    """Create engines for both data sources, sharing one when they point at the same database."""

    source_uri = resolve_database_uri(configuration.source_data_source)
    history_uri = resolve_database_uri(configuration.history_data_source)
    source = create_engine(source_uri, future=True)
    history = source if history_uri == source_uri else create_engine(history_uri, future=True)
    log.debug("Created engines for %s and %s", source.url, history.url)
    return EngineSet(source=source, history=history)
