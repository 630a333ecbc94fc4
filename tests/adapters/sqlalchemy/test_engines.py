from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from historian.adapters.sqlalchemy import create_engines, resolve_database_uri
from historian.config import HistoryConfiguration, MissingConfigurationError

if TYPE_CHECKING:
    from pathlib import Path


def test_resolve_database_uri_passes_uris_through() -> None:
    assert resolve_database_uri("sqlite:///history.db") == "sqlite:///history.db"


def test_resolve_database_uri_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOURCE_DATABASE_URL", "sqlite:///source.db")

    assert resolve_database_uri("SOURCE_DATABASE_URL") == "sqlite:///source.db"


def test_resolve_database_uri_requires_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SOURCE_DATABASE_URL", raising=False)

    with pytest.raises(MissingConfigurationError, match="SOURCE_DATABASE_URL"):
        resolve_database_uri("SOURCE_DATABASE_URL")


def test_same_data_source_shares_one_engine(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'app.db'}"
    configuration = HistoryConfiguration(source_data_source=uri, history_data_source=uri)

    with create_engines(configuration) as engines:
        assert engines.source is engines.history


def test_separate_data_sources_get_separate_engines(tmp_path: Path) -> None:
    configuration = HistoryConfiguration(
        source_data_source=f"sqlite+pysqlite:///{tmp_path / 'source.db'}",
        history_data_source=f"sqlite+pysqlite:///{tmp_path / 'history.db'}",
    )

    with create_engines(configuration) as engines:
        assert engines.source is not engines.history
        assert engines.history.url.database == str(tmp_path / "history.db")
