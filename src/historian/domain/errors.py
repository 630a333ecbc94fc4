"""Errors raised by the history table engine."""

from __future__ import annotations


class IntrospectionError(RuntimeError):
    """Raised when column metadata cannot be read from a source table."""

    def __init__(self, table_name: str, message: str) -> None:
        super().__init__(message)
        self.table_name = table_name


class ManagerError(RuntimeError):
    """Raised when a history table operation fails.

    Always carries the entity key of the audited entity and, when the driver
    reports one, the database error code of the underlying failure.
    """

    def __init__(
        self,
        entity_key: str,
        message: str,
        *,
        error_code: int | str | None = None,
    ) -> None:
        super().__init__(f"{entity_key}: {message}")
        self.entity_key = entity_key
        self.error_code = error_code


class HistoryTableExistsError(ManagerError):
    """Raised by ``create()`` when the history table already exists (race loss)."""


class InvalidRecordError(ValueError):
    """Raised when no identifier can be obtained for an audited record."""
