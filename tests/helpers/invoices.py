"""Sample invoice schema shared by database-backed tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

INVOICE_DDL = (
    "CREATE TABLE invoice ("
    "invoice_id INTEGER PRIMARY KEY, "
    "customer VARCHAR(40) NOT NULL, "
    "amount DECIMAL(10,2), "
    "issued_on DATE, "
    "created_at TIMESTAMP)"
)

INVOICE_ROWS: tuple[tuple[object, ...], ...] = (
    (1, "Acme", 12.5, "2024-01-01", "2024-01-01 10:00:00"),
    (2, "Globex", 99.99, "2024-01-02", "2024-01-02 11:30:00"),
    (3, "Initech", 0.0, None, None),
)


def create_invoice_table(engine: Engine) -> None:
    with engine.begin() as connection:
        connection.exec_driver_sql(INVOICE_DDL)
        connection.exec_driver_sql("INSERT INTO invoice VALUES (?, ?, ?, ?, ?)", list(INVOICE_ROWS))


def history_rows(engine: Engine, table: str = "invoice_history") -> list[dict[str, object]]:
    with engine.connect() as connection:
        result = connection.exec_driver_sql(f"SELECT * FROM {table} ORDER BY 1")
        return [dict(row) for row in result.mappings()]
