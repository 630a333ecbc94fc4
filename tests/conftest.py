from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from historian.domain.model import EntityMapping
from tests.helpers.invoices import create_invoice_table

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture
def source_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'source.db'}", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def history_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'history.db'}", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def invoice_table(source_engine: Engine) -> Engine:
    create_invoice_table(source_engine)
    return source_engine


@pytest.fixture
def invoice_mapping() -> EntityMapping:
    return EntityMapping(
        entity_key="com.example.Invoice",
        source_table="invoice",
        source_id_column="invoice_id",
        history_table="invoice_history",
        history_id_column="invoice_history_id",
    )
